from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Union

INFLOW = "inflow"
OUTFLOW = "outflow"
TRANSACTION_TYPES = (INFLOW, OUTFLOW)

ALL = "all"

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

XP_PER_LEVEL = 100


@dataclass(frozen=True)
class Transaction:
    id: str
    date: date
    type: str            # "inflow" or "outflow"
    amount: Decimal      # always non-negative, the type carries the sign
    description: str
    category: str
    responsible: str
    notes: str = ""


@dataclass(frozen=True)
class FilterCriteria:
    year: Union[int, str] = ALL
    month: Union[int, str] = ALL
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_text: str = ""

    @classmethod
    def cleared(cls) -> "FilterCriteria":
        return cls()


@dataclass(frozen=True)
class Totals:
    inflow: Decimal = Decimal("0")
    outflow: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class CategorySlice:
    name: str
    amount: Decimal
    type: str  # type of the last transaction seen in the group, used for coloring


@dataclass(frozen=True)
class TypeSlice:
    name: str
    amount: Decimal
    type: str


@dataclass(frozen=True)
class MonthlyPoint:
    label: str
    year: int
    month: int
    inflow: Decimal
    outflow: Decimal

    @property
    def balance(self) -> Decimal:
        return self.inflow - self.outflow


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


@dataclass(frozen=True)
class UserStats:
    """Progress record of a user.

    level and next_level_xp are derived from xp; use with_xp to change xp so
    they never drift apart.
    """

    transactions_created: int = 0
    reports_generated: int = 0
    sheets_managed: int = 0
    days_active: int = 1
    level: int = 1
    xp: int = 0
    next_level_xp: int = XP_PER_LEVEL

    def with_xp(self, xp: int) -> "UserStats":
        level = level_for_xp(xp)
        return replace(self, xp=xp, level=level, next_level_xp=level * XP_PER_LEVEL)

    def to_dict(self) -> dict:
        return {
            "transactionsCreated": self.transactions_created,
            "reportsGenerated": self.reports_generated,
            "sheetsManaged": self.sheets_managed,
            "daysActive": self.days_active,
            "level": self.level,
            "xp": self.xp,
            "nextLevelXp": self.next_level_xp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserStats":
        defaults = cls()
        stats = cls(
            transactions_created=int(data.get("transactionsCreated", defaults.transactions_created)),
            reports_generated=int(data.get("reportsGenerated", defaults.reports_generated)),
            sheets_managed=int(data.get("sheetsManaged", defaults.sheets_managed)),
            days_active=int(data.get("daysActive", defaults.days_active)),
            xp=int(data.get("xp", defaults.xp)),
        )
        return stats.with_xp(stats.xp)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    unlocked: bool = False
    progress: int = 0
    max_progress: int = 1

    def advance(self, progress: int) -> "Achievement":
        # an unlocked achievement stays unlocked even if its counter drops
        return replace(
            self,
            progress=progress,
            unlocked=self.unlocked or progress >= self.max_progress,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "unlocked": self.unlocked,
            "progress": self.progress,
            "maxProgress": self.max_progress,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            unlocked=bool(data.get("unlocked", False)),
            progress=int(data.get("progress") or 0),
            max_progress=int(data.get("maxProgress") or 1),
        )


@dataclass(frozen=True)
class Profile:
    name: str = ""
    email: str = ""
    username: str = ""
    bio: str = ""
    photo_url: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "username": self.username,
            "bio": self.bio,
            "photoUrl": self.photo_url,
        }


@dataclass(frozen=True)
class ReportView:
    transactions: tuple[Transaction, ...]
    totals: Totals
    categories: tuple[CategorySlice, ...]
    types: tuple[TypeSlice, ...]
    top_categories: tuple[CategorySlice, ...]
    monthly: tuple[MonthlyPoint, ...] = field(default_factory=tuple)
