"""
Hearth — Chore lifecycle.

Stored status only ever moves pending -> completed. "Overdue" is never
written: it is derived from (status, due_by, now) every time chores are read,
so there is no background job and no stale status.

Completion is not scoped to the caller: anyone holding a chore id can
complete it. Authorization, if wanted, belongs to the transport layer.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from hearth.core.errors import NotFound, ValidationError
from hearth.data.models import Chore, ChoreStatus, ChoreType, Origin

if TYPE_CHECKING:
    from hearth.core.households import HouseholdRegistry
    from hearth.ports.store_port import DocumentStore

logger = logging.getLogger(__name__)

CHORES = "chores"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_status(status: ChoreStatus, due_by: datetime, now: datetime) -> ChoreStatus:
    """Pending chores past their due time read as overdue."""
    if status == ChoreStatus.PENDING and now > due_by:
        return ChoreStatus.OVERDUE
    return status


def partition_chores(
    chores: list[Chore], member_id: str,
) -> tuple[list[Chore], list[Chore]]:
    """Split open chores into (assigned to member_id, assigned to others).

    Completed chores are left out of both lists.
    """
    mine: list[Chore] = []
    others: list[Chore] = []
    for chore in chores:
        if chore.status == ChoreStatus.COMPLETED:
            continue
        (mine if chore.assigned_to == member_id else others).append(chore)
    return mine, others


class ChoreLifecycleManager:
    """Creates, lists and completes chores of a household."""

    def __init__(
        self,
        store: DocumentStore,
        households: HouseholdRegistry,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._households = households
        self._clock = clock

    @staticmethod
    def _doc_to_chore(doc: dict) -> Chore:
        return Chore(
            id=doc["id"],
            household_id=doc["household_id"],
            type=ChoreType(doc["type"]),
            assigned_to=doc["assigned_to"],
            status=ChoreStatus(doc["status"]),
            due_by=datetime.fromisoformat(doc["due_by"]),
            created_at=datetime.fromisoformat(doc["created_at"]),
            triggered_by=Origin(doc.get("triggered_by", Origin.MANUAL.value)),
        )

    def _with_derived_status(self, chore: Chore, now: datetime) -> Chore:
        derived = derive_status(chore.status, chore.due_by, now)
        if derived is chore.status:
            return chore
        return replace(chore, status=derived)

    def create(
        self,
        household_id: str,
        chore_type: ChoreType | str,
        assigned_to: str,
        due_by: datetime,
        triggered_by: Origin | str = Origin.MANUAL,
    ) -> Chore:
        """Add a pending chore assigned to a member of the household."""
        try:
            chore_type = ChoreType(chore_type)
            triggered_by = Origin(triggered_by)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if due_by.tzinfo is None:
            raise ValidationError("due_by must be timezone-aware")

        household = self._households.get(household_id)
        if assigned_to not in household.members:
            raise ValidationError(
                f"{assigned_to} is not a member of household {household_id}"
            )

        created_at = self._clock()
        chore_id = self._store.create(
            CHORES,
            {
                "household_id": household_id,
                "type": chore_type.value,
                "assigned_to": assigned_to,
                "status": ChoreStatus.PENDING.value,
                "due_by": due_by.isoformat(),
                "triggered_by": triggered_by.value,
                "created_at": created_at.isoformat(),
            },
        )
        logger.info(
            "Chore %s (%s) added to household %s for %s, due %s",
            chore_id, chore_type.value, household_id, assigned_to, due_by.isoformat(),
        )
        return Chore(
            id=chore_id,
            household_id=household_id,
            type=chore_type,
            assigned_to=assigned_to,
            status=ChoreStatus.PENDING,
            due_by=due_by,
            created_at=created_at,
            triggered_by=triggered_by,
        )

    def get(self, chore_id: str, now: datetime | None = None) -> Chore:
        doc = self._store.get(CHORES, chore_id)
        if doc is None:
            raise NotFound(f"Chore {chore_id} not found")
        return self._with_derived_status(self._doc_to_chore(doc), now or self._clock())

    def list_for_household(
        self, household_id: str, now: datetime | None = None,
    ) -> list[Chore]:
        """All chores of the household with overdue derived as of `now`."""
        self._households.get(household_id)
        now = now or self._clock()
        docs = self._store.query(CHORES, "household_id", household_id)
        return [self._with_derived_status(self._doc_to_chore(d), now) for d in docs]

    def complete(self, chore_id: str) -> None:
        """Mark a chore completed. Completing twice is a no-op."""
        doc = self._store.get(CHORES, chore_id)
        if doc is None:
            raise NotFound(f"Chore {chore_id} not found")
        if doc["status"] == ChoreStatus.COMPLETED.value:
            logger.debug("Chore %s already completed", chore_id)
            return
        if not self._store.update(CHORES, chore_id, {"status": ChoreStatus.COMPLETED.value}):
            raise NotFound(f"Chore {chore_id} not found")
        logger.info("Chore %s completed", chore_id)
