"""
Hearth — Data Models.

Households, their members' chores and the shared shopping list.
All timestamps are timezone-aware UTC datetimes. Nothing here talks to the
store; conversion to and from documents lives with each manager.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ChoreType(Enum):
    DISHES = "dishes"
    TRASH = "trash"
    VACUUM = "vacuum"
    LAUNDRY = "laundry"
    CLEANUP = "cleanup"
    GROCERY = "grocery"


class ChoreStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"    # derived on read, never stored


class Origin(Enum):
    """Where a chore or shopping item came from. Informational only."""

    SENSOR = "sensor"
    MANUAL = "manual"


@dataclass
class Household:
    """A group of members sharing one join code, chore pool and shopping list."""

    id: str
    code: str                               # 6 chars, [A-Z0-9], stored uppercase
    created_at: datetime
    members: list[str] = field(default_factory=list)   # user ids, unique


@dataclass
class Member:
    """Profile of an authenticated user. Credentials never live here."""

    user_id: str
    name: str = ""
    email: str = ""
    household_id: str | None = None
    created_at: datetime | None = None


@dataclass
class Chore:
    """A typed, assigned task with a due time.

    `status` holds the stored value (pending/completed) when read straight from
    the store and the derived value (which may be overdue) when returned by
    ChoreLifecycleManager.
    """

    id: str
    household_id: str
    type: ChoreType
    assigned_to: str
    status: ChoreStatus
    due_by: datetime
    created_at: datetime
    triggered_by: Origin = Origin.MANUAL


@dataclass
class MemberStats:
    """Per-member counters computed on demand, never persisted."""

    member_id: str
    completed_count: int = 0
    active_count: int = 0    # pending + overdue


@dataclass
class ShoppingItem:
    id: str
    name: str
    added_by: Origin = Origin.MANUAL
