"""Tier enum for client urgency levels."""

from enum import Enum


class Tier(Enum):
    """Urgency tiers by days remaining. Lower value = more urgent."""

    EXPIRED = 1
    CRITICAL = 2  # due within a week
    WARNING = 3  # due within two weeks
    NORMAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()
