from flashvote.client.read_model import VoteRejected, VoteResultsCache

__all__ = ["VoteRejected", "VoteResultsCache"]
