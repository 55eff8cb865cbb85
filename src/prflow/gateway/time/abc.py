"""Abstract clock interface.

Rewrites name their backup tags and scratch branches after the current time;
routing that through a gateway keeps names deterministic under test.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract interface for time operations."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current timezone-aware datetime."""
        ...

    def epoch_millis(self) -> int:
        """Milliseconds since the epoch, used as a unique name suffix."""
        return int(self.now().timestamp() * 1000)
