from flashvote.models.event import Event
from flashvote.models.admin import EventAdmin
from flashvote.models.item import Item
from flashvote.models.subject import Subject
from flashvote.models.location import Location
from flashvote.models.vote import Vote

__all__ = ["Event", "EventAdmin", "Item", "Subject", "Location", "Vote"]
