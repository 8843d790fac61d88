# poe/events.py
"""
Notification sinks. The registry deposits exactly one event per successful
operation, in commit order; failed operations deposit nothing.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from poe.core.types import Event, Height


class NotificationSink(ABC):
    """Anything that accepts registry events."""

    @abstractmethod
    def deposit(self, event: Event, height: Height) -> None:
        pass


class EventLog(NotificationSink):
    """In-memory append-only sink."""

    def __init__(self):
        self._records: List[Tuple[Event, Height]] = []

    def deposit(self, event: Event, height: Height) -> None:
        self._records.append((event, height))

    @property
    def events(self) -> List[Event]:
        return [event for event, _ in self._records]

    @property
    def records(self) -> List[Tuple[Event, Height]]:
        return self._records.copy()

    def __len__(self) -> int:
        return len(self._records)
