"""Database models."""

from models.dislike import UserDislike
from models.favorite import FavoriteLocation
from models.like import UserLike
from models.location import Location
from models.match import Match
from models.notification import Notification
from models.suggestion import LocationSuggestion
from models.user import User, UserBlock

__all__ = [
    "User",
    "UserBlock",
    "UserLike",
    "UserDislike",
    "Match",
    "Notification",
    "Location",
    "LocationSuggestion",
    "FavoriteLocation",
]
