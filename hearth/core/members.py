"""
Hearth — Member directory.

Profile records for already-authenticated users, keyed by the identity
provider's user id. Holds the member's household reference; the household
itself owns the member-id set.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from hearth.core.errors import NotFound, ValidationError
from hearth.data.models import Member

if TYPE_CHECKING:
    from hearth.ports.store_port import DocumentStore

logger = logging.getLogger(__name__)

MEMBERS = "members"


class MemberDirectory:
    """Store-backed member profiles."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @staticmethod
    def _doc_to_member(doc: dict) -> Member:
        created = doc.get("created_at")
        return Member(
            user_id=doc["id"],
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            household_id=doc.get("household_id"),
            created_at=datetime.fromisoformat(created) if created else None,
        )

    def register(self, user_id: str, name: str, email: str = "") -> Member:
        """Create or refresh a profile. The household reference is left alone."""
        name = name.strip()
        if not name:
            raise ValidationError("Member name must not be empty")

        fields: dict = {"name": name, "email": email.strip()}
        if self._store.get(MEMBERS, user_id) is None:
            fields["created_at"] = datetime.now(timezone.utc).isoformat()
        self._store.upsert(MEMBERS, user_id, fields)
        logger.info("Member registered: %s '%s'", user_id, name)
        return self.get(user_id)

    def find(self, user_id: str) -> Member | None:
        doc = self._store.get(MEMBERS, user_id)
        if doc is None:
            return None
        return self._doc_to_member(doc)

    def get(self, user_id: str) -> Member:
        member = self.find(user_id)
        if member is None:
            raise NotFound(f"Member {user_id} not found")
        return member

    def set_household(self, user_id: str, household_id: str | None) -> str | None:
        """Point the member at a household and return the one it replaced.

        The read of the old value and the write happen atomically, so of two
        concurrent moves exactly one sees the other's household as previous.
        """
        previous = self._store.swap_field(MEMBERS, user_id, "household_id", household_id)
        logger.debug("Member %s household %s -> %s", user_id, previous, household_id)
        return previous
