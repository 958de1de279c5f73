"""
Hearth — Member statistics.

Counts completed and active chores per household member. Computed on demand
from the full chore list; households are small so a members x chores scan is
fine and no index is kept.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from hearth.data.models import ChoreStatus, MemberStats

if TYPE_CHECKING:
    from hearth.core.chores import ChoreLifecycleManager
    from hearth.core.households import HouseholdRegistry
    from hearth.data.models import Chore

logger = logging.getLogger(__name__)

_ACTIVE = (ChoreStatus.PENDING, ChoreStatus.OVERDUE)


def aggregate(member_ids: list[str], chores: list[Chore]) -> list[MemberStats]:
    """Per-member counters, sorted by completed_count descending.

    sorted() is stable, so members with equal counts keep membership order.
    """
    stats = []
    for member_id in member_ids:
        entry = MemberStats(member_id=member_id)
        for chore in chores:
            if chore.assigned_to != member_id:
                continue
            if chore.status == ChoreStatus.COMPLETED:
                entry.completed_count += 1
            elif chore.status in _ACTIVE:
                entry.active_count += 1
        stats.append(entry)
    return sorted(stats, key=lambda s: s.completed_count, reverse=True)


class StatsAggregator:
    """Builds the leaderboard of a household."""

    def __init__(
        self, households: HouseholdRegistry, chores: ChoreLifecycleManager,
    ) -> None:
        self._households = households
        self._chores = chores

    def compute_stats(
        self, household_id: str, now: datetime | None = None,
    ) -> list[MemberStats]:
        household = self._households.get(household_id)
        chores = self._chores.list_for_household(household_id, now=now)
        stats = aggregate(household.members, chores)
        logger.debug(
            "Stats for household %s: %d members, %d chores",
            household_id, len(stats), len(chores),
        )
        return stats
