from homebase.models.bill import Bill
from homebase.models.chore import Chore
from homebase.models.event import Event, EventAttendee
from homebase.models.household import Household
from homebase.models.profile_picture import ProfilePicture
from homebase.models.shopping_item import ShoppingItem
from homebase.models.user import User

__all__ = [
    "Bill",
    "Chore",
    "Event",
    "EventAttendee",
    "Household",
    "ProfilePicture",
    "ShoppingItem",
    "User",
]
