"""Identity lookups needed by moderation.

Authentication and profiles live in the platform's identity service.
Moderation only needs to know who is a moderator and how to label a
member in moderator queues.
"""
import os
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, Iterable, Optional


class IdentityProvider(ABC):

    @abstractmethod
    def is_moderator(self, user_id: Optional[str]) -> bool:
        """Whether the member holds the moderator role."""

    @abstractmethod
    def display_name(self, user_id: str) -> str:
        """Name shown for the member in moderator queues."""


class StaticIdentityProvider(IdentityProvider):
    """Moderator roster from configuration. For dev and small deployments."""

    def __init__(
        self,
        moderator_ids: Iterable[str] = (),
        display_names: Optional[Dict[str, str]] = None,
    ):
        self.moderator_ids: FrozenSet[str] = frozenset(moderator_ids)
        self.display_names = dict(display_names or {})

    @classmethod
    def from_env(cls) -> "StaticIdentityProvider":
        """Read MODERATOR_IDS as a comma-separated list."""
        raw = os.getenv("MODERATOR_IDS", "")
        return cls(moderator_ids=[m.strip() for m in raw.split(",") if m.strip()])

    def is_moderator(self, user_id):
        return bool(user_id) and user_id in self.moderator_ids

    def display_name(self, user_id):
        return self.display_names.get(user_id, "Community member")
