"""
Remote store contract -- create/read/update/delete against the server.

Implementations translate between the local User entity and
whatever the server speaks on the wire. Every operation raises
RemoteFailure on network errors, non-2xx responses or payloads
that do not parse into a user.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import User


class RemoteUserStore(ABC):
    """Abstract authoritative user collection."""

    @abstractmethod
    def list_all(self) -> list[User]:
        """Fetch the complete collection.

        Returns:
            Every server record, as local users with both flags false.
        """

    @abstractmethod
    def create(self, user: User) -> User:
        """Create a record; the server assigns the id.

        Args:
            user: Local record (its provisional id is not sent).

        Returns:
            The server-side representation, carrying the final id.
        """

    @abstractmethod
    def update(self, user_id: str, user: User) -> User:
        """Replace the server record with this id.

        Returns:
            The server's current representation.
        """

    @abstractmethod
    def delete(self, user_id: str) -> None:
        """Remove the server record with this id."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable store name (used in logs and status output)."""
