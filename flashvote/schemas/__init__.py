from flashvote.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from flashvote.schemas.item import ItemCreate, ItemUpdate, ItemResponse
from flashvote.schemas.subject import SubjectCreate, SubjectUpdate, SubjectResponse
from flashvote.schemas.location import LocationCreate, LocationUpdate, LocationResponse
from flashvote.schemas.vote import VoteCreate, VoteResponse, BatchVotesRequest, BatchVotesResponse

__all__ = [
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse",
    "ItemCreate", "ItemUpdate", "ItemResponse",
    "SubjectCreate", "SubjectUpdate", "SubjectResponse",
    "LocationCreate", "LocationUpdate", "LocationResponse",
    "VoteCreate", "VoteResponse", "BatchVotesRequest", "BatchVotesResponse",
]
