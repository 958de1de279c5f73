"""
Hearth — Household registry.

Creates households with a unique join code and adds members to them.
Membership changes go through the store's atomic array operations so two
people joining the same household at once both end up in `members`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from hearth.core.codes import CODE_LENGTH, generate_code, is_valid_code, normalize_code
from hearth.core.errors import Conflict, NotFound, ValidationError
from hearth.data.models import Household
from hearth.ports.store_port import DuplicateKey

if TYPE_CHECKING:
    from hearth.core.members import MemberDirectory
    from hearth.ports.store_port import DocumentStore

logger = logging.getLogger(__name__)

HOUSEHOLDS = "households"


def _check_user_id(user_id: str) -> None:
    if not user_id or not user_id.strip():
        raise ValidationError("User id must not be empty")


class HouseholdRegistry:
    """Owns household creation and membership."""

    def __init__(
        self,
        store: DocumentStore,
        members: MemberDirectory,
        code_generator: Callable[[int], str] = generate_code,
        code_length: int = CODE_LENGTH,
        max_attempts: int = 10,
    ) -> None:
        self._store = store
        self._members = members
        self._generate = code_generator
        self._code_length = code_length
        self._max_attempts = max_attempts

    @staticmethod
    def _doc_to_household(doc: dict) -> Household:
        return Household(
            id=doc["id"],
            code=doc["code"],
            created_at=datetime.fromisoformat(doc["created_at"]),
            members=list(doc.get("members") or []),
        )

    def create(self, owner_id: str) -> Household:
        """Create a household with a fresh code and the owner as sole member.

        Code uniqueness is enforced by the store inside the insert transaction;
        a collision is retried with a new code up to max_attempts times.
        If the store fails after the insert, the household exists but the
        owner's reference still points at their previous household.
        """
        _check_user_id(owner_id)
        created_at = datetime.now(timezone.utc)

        household_id = None
        for attempt in range(1, self._max_attempts + 1):
            code = self._generate(self._code_length)
            try:
                household_id = self._store.create(
                    HOUSEHOLDS,
                    {
                        "code": code,
                        "created_at": created_at.isoformat(),
                        "members": [owner_id],
                    },
                    unique_fields=("code",),
                )
                break
            except DuplicateKey:
                logger.warning(
                    "Join code collision on attempt %d/%d, retrying",
                    attempt, self._max_attempts,
                )

        if household_id is None:
            raise Conflict(
                f"Could not allocate a unique join code after {self._max_attempts} attempts"
            )

        self._move_member(owner_id, household_id)
        logger.info("Household %s created by %s with code %s", household_id, owner_id, code)
        return Household(
            id=household_id, code=code, created_at=created_at, members=[owner_id],
        )

    def join(self, code: str, user_id: str) -> Household:
        """Add user_id to the household holding `code` (case-insensitive).

        The user is added to `members` before their household reference moves.
        If the store fails in between, the user is listed but not pointed at the
        household; join is idempotent, so retrying the same call completes it.
        """
        _check_user_id(user_id)
        normalized = normalize_code(code or "")
        if not is_valid_code(normalized, self._code_length):
            raise ValidationError(f"Malformed join code: {code!r}")

        matches = self._store.query(HOUSEHOLDS, "code", normalized)
        if not matches:
            raise NotFound(f"No household with code {normalized}")
        household_id = matches[0]["id"]

        if not self._store.array_union(HOUSEHOLDS, household_id, "members", [user_id]):
            raise NotFound(f"Household {household_id} not found")

        self._move_member(user_id, household_id)
        logger.info("User %s joined household %s", user_id, household_id)
        return self.get(household_id)

    def get(self, household_id: str) -> Household:
        doc = self._store.get(HOUSEHOLDS, household_id)
        if doc is None:
            raise NotFound(f"Household {household_id} not found")
        return self._doc_to_household(doc)

    def household_of(self, user_id: str) -> Household | None:
        """Return the household the member currently points at, if any."""
        member = self._members.find(user_id)
        if member is None or not member.household_id:
            return None
        doc = self._store.get(HOUSEHOLDS, member.household_id)
        if doc is None:
            return None
        return self._doc_to_household(doc)

    def _move_member(self, user_id: str, household_id: str) -> None:
        """Point the user at household_id and drop them from the one it replaced.

        The reference swap is atomic, so when one user moves twice at once the
        later swap sees the earlier target and removes the user from it.
        """
        previous = self._members.set_household(user_id, household_id)
        if not previous or previous == household_id:
            return
        self._store.array_remove(HOUSEHOLDS, previous, "members", [user_id])
        logger.info("User %s left household %s", user_id, previous)
