"""Repository implementations (in-memory only; persistence technology is pluggable)."""

from .in_memory import InMemoryNotificationRepository, InMemoryProfileRepository

__all__ = [
    "InMemoryNotificationRepository",
    "InMemoryProfileRepository",
]
