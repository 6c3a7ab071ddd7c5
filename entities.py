"""
State records shared by every component (pure data, no game rules)
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from catalog import RESOURCE_AREAS, EffectKind, MarketCategory, ProductTypeKey, product_type
from sim_clock import add_months, months_between


def clamp(x, a, b):
    """Clamp value between min and max"""
    return max(a, min(b, x))


def money(x):
    """Format number as money string"""
    if abs(x) >= 1_000_000_000:
        return f"${x/1_000_000_000:.1f}B"
    if abs(x) >= 1_000_000:
        return f"${x/1_000_000:.1f}M"
    return f"${x:,.0f}"


def new_id(rng):
    """Random v4 UUID drawn from the simulation's RNG so replays are exact"""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


# ==================== Enums ====================

class ProductStatus(Enum):
    IN_DEVELOPMENT = "in_development"
    READY_TO_LAUNCH = "ready_to_launch"
    ACTIVE = "active"
    DISCONTINUED = "discontinued"


# ==================== Products ====================

@dataclass
class ResourceAllocation:
    """Percentage split of development effort"""
    backend: int = 20
    frontend: int = 20
    infrastructure: int = 20
    ai: int = 20
    database: int = 20

    @classmethod
    def from_dict(cls, values):
        return cls(**{area: int(values.get(area, 0)) for area in RESOURCE_AREAS})

    @classmethod
    def ideal_for(cls, type_key):
        return cls(*product_type(type_key).ideal_distribution)

    def as_tuple(self):
        return tuple(getattr(self, area) for area in RESOURCE_AREAS)

    def as_dict(self):
        return dict(zip(RESOURCE_AREAS, self.as_tuple()))

    def total(self):
        return sum(self.as_tuple())

    def distance(self, ideal):
        """L1 distance to an ideal split (tuple ordered as RESOURCE_AREAS)"""
        return sum(abs(a - b) for a, b in zip(self.as_tuple(), ideal))

    def normalized(self):
        """Rescaled to sum to exactly 100 (largest remainder rounding)"""
        values = [max(0, v) for v in self.as_tuple()]
        total = sum(values)
        if total == 100:
            return ResourceAllocation(*values)
        if total == 0:
            return ResourceAllocation()
        raw = [v * 100 / total for v in values]
        floors = [int(r) for r in raw]
        short = 100 - sum(floors)
        order = sorted(range(len(raw)), key=lambda i: raw[i] - floors[i], reverse=True)
        for i in order[:short]:
            floors[i] += 1
        return ResourceAllocation(*floors)


@dataclass
class ProductHistoryEntry:
    date: date
    users: int
    quality: float
    revenue: float


@dataclass
class Product:
    """A software product owned by the player or a competitor"""
    id: str
    type: ProductTypeKey
    name: str
    quality: float = 1.0
    users: int = 0
    market_share: float = 0.0
    status: ProductStatus = ProductStatus.ACTIVE
    last_update: Optional[date] = None
    launch_date: Optional[date] = None
    revenue: float = 0.0

    # Player-only development fields
    resource_allocation: Optional[ResourceAllocation] = None
    development_progress: float = 0.0
    development_start: Optional[date] = None

    history: List[ProductHistoryEntry] = field(default_factory=list)

    @property
    def spec(self):
        return product_type(self.type)

    @property
    def category(self):
        return self.spec.category

    @property
    def is_active(self):
        return self.status == ProductStatus.ACTIVE

    def set_quality(self, quality):
        self.quality = clamp(float(quality), 1.0, 10.0)

    def set_users(self, users, on=None):
        """Update user count and append one history row"""
        self.users = max(0, int(users))
        self.history.append(ProductHistoryEntry(on, self.users, self.quality, self.revenue))

    def set_market_share(self, share):
        self.market_share = clamp(float(share), 0.0, 100.0)

    def months_since_update(self, on):
        if self.last_update is None:
            return None
        return months_between(self.last_update, on)


# ==================== Companies ====================

@dataclass
class HistoryPoint:
    """Financial snapshot for charting (never mutated once appended)"""
    date: Optional[date]
    cash: float
    valuation: float
    total_users: int


@dataclass
class Company:
    """The player's company"""
    name: str = ""
    cash: float = 1_000_000
    valuation: float = 1_000_000
    employees: int = 0
    servers: int = 0
    marketing_budget: float = 0.0
    total_users: int = 0
    reputation: int = 50
    founded_date: Optional[date] = None
    bankrupt: bool = False
    history: List[HistoryPoint] = field(default_factory=list)


@dataclass
class CompetitorCompany:
    """Algorithmically generated rival"""
    id: str
    name: str
    valuation: float
    reputation: int
    founded_date: date
    cash: float
    growth_rate: float  # fixed 0.9-1.2 multiplier
    aggressive: bool = False
    products: List[Product] = field(default_factory=list)

    @property
    def total_users(self):
        return sum(p.users for p in self.products)


# ==================== Market events ====================

@dataclass(frozen=True)
class MarketEvent:
    """A timed modifier on category trends (immutable once created)"""
    id: str
    title: str
    description: str
    effect_date: date
    duration: int  # months
    kind: EffectKind
    multiplier: float
    categories: Tuple[MarketCategory, ...] = tuple(MarketCategory)

    @property
    def end_date(self):
        return add_months(self.effect_date, self.duration)

    def is_active(self, on):
        """Active on [effect_date, effect_date + duration months], both ends inclusive"""
        return self.effect_date <= on <= self.end_date

    def applies_to(self, category):
        if self.kind == EffectKind.GROWTH_MULTIPLIER:
            return True
        return category in self.categories


@dataclass
class Acquisition:
    """Record of a completed acquisition"""
    date: date
    buyer: str
    target: str
    cost: float
    product_ids: List[str] = field(default_factory=list)
