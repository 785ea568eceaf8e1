from craftfair.models.user import User
from craftfair.models.vendor import Vendor
from craftfair.models.event import Event
from craftfair.models.registration import EventRegistration

__all__ = ["User", "Vendor", "Event", "EventRegistration"]
