from scrolltracker.models.base import Base
from scrolltracker.models.tracker import ScrollEvent, Tracker

__all__ = [
    "Base",
    "Tracker",
    "ScrollEvent",
]
