"""Domain events for HouseHub.

Every successful mutation is announced on the shared updates channel so
connected clients can refresh their views.
"""

from househub.events.publisher import InMemoryPublisher, Publisher, RedisPublisher
from househub.events.schemas import Action, DomainEvent, Module

__all__ = [
    "Action",
    "DomainEvent",
    "InMemoryPublisher",
    "Module",
    "Publisher",
    "RedisPublisher",
]
