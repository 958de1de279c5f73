"""
Hearth — UI-Agnostic Household Service.

The public surface of the core: every operation takes the caller's identity
or the household id explicitly, there is no ambient "current user". Each UI
adapter (Telegram today) calls this service and renders the results its own
way. Failures are raised as HearthError / StoreUnavailable, never swallowed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from hearth.core.chores import ChoreLifecycleManager, partition_chores
from hearth.core.households import HouseholdRegistry
from hearth.core.members import MemberDirectory
from hearth.core.shopping import ShoppingListManager
from hearth.core.stats import StatsAggregator
from hearth.data.models import Origin

if TYPE_CHECKING:
    from hearth.data.models import (
        Chore,
        ChoreType,
        Household,
        Member,
        MemberStats,
        ShoppingItem,
    )
    from hearth.ports.store_port import DocumentStore

logger = logging.getLogger(__name__)


class HouseholdService:
    """Wires the managers over one document store."""

    def __init__(
        self,
        store: DocumentStore,
        code_length: int | None = None,
        max_code_attempts: int | None = None,
    ) -> None:
        if code_length is None or max_code_attempts is None:
            from hearth.config import settings
            code_length = code_length or settings.JOIN_CODE_LENGTH
            max_code_attempts = max_code_attempts or settings.JOIN_CODE_MAX_ATTEMPTS

        self.members = MemberDirectory(store)
        self.households = HouseholdRegistry(
            store,
            self.members,
            code_length=code_length,
            max_attempts=max_code_attempts,
        )
        self.chores = ChoreLifecycleManager(store, self.households)
        self.stats = StatsAggregator(self.households, self.chores)
        self.shopping = ShoppingListManager(store, self.households)

    @classmethod
    def from_settings(cls) -> HouseholdService:
        """Build the service on the store named by STORE_BACKEND."""
        from hearth.adapters.store_factory import create_store

        return cls(create_store())

    # -- members & households ------------------------------------------------

    def register_member(self, user_id: str, name: str, email: str = "") -> Member:
        return self.members.register(user_id, name, email)

    def create_household(self, owner_id: str) -> Household:
        return self.households.create(owner_id)

    def join_household(self, code: str, user_id: str) -> Household:
        return self.households.join(code, user_id)

    def get_household(self, household_id: str) -> Household:
        return self.households.get(household_id)

    def household_of(self, user_id: str) -> Household | None:
        return self.households.household_of(user_id)

    # -- chores --------------------------------------------------------------

    def assign_chore(
        self,
        household_id: str,
        chore_type: ChoreType | str,
        assigned_to: str,
        due_by: datetime,
        triggered_by: Origin | str = Origin.MANUAL,
    ) -> Chore:
        return self.chores.create(household_id, chore_type, assigned_to, due_by, triggered_by)

    def list_chores(self, household_id: str, now: datetime | None = None) -> list[Chore]:
        return self.chores.list_for_household(household_id, now=now)

    def complete_chore(self, chore_id: str) -> None:
        self.chores.complete(chore_id)

    def partition_chores(
        self, household_id: str, member_id: str, now: datetime | None = None,
    ) -> tuple[list[Chore], list[Chore]]:
        """(mine, others) among the household's open chores."""
        return partition_chores(self.list_chores(household_id, now=now), member_id)

    def compute_member_stats(
        self, household_id: str, now: datetime | None = None,
    ) -> list[MemberStats]:
        return self.stats.compute_stats(household_id, now=now)

    # -- shopping list -------------------------------------------------------

    def add_shopping_item(
        self, household_id: str, name: str, added_by: Origin | str = Origin.MANUAL,
    ) -> ShoppingItem:
        return self.shopping.add(household_id, name, added_by)

    def remove_shopping_item(self, household_id: str, item_id: str) -> None:
        self.shopping.remove(household_id, item_id)

    def list_shopping_items(self, household_id: str) -> list[ShoppingItem]:
        return self.shopping.list_items(household_id)
