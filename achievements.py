"""
Achievement Evaluator.

evaluate() is a pure predicate bank over an AchievementSnapshot; it reports
every definition whose predicate holds. AchievementBook is the unlocked set:
unlocking an id that is already present does nothing.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AchievementSnapshot:
    """The inputs the predicates look at, captured after valuation is recomputed"""
    cash: float = 0.0
    total_users: int = 0
    valuation: float = 0.0
    products_launched: int = 0
    active_products: int = 0
    best_market_share: float = 0.0
    top_competitor_valuation: float = 0.0
    competitor_count: int = 0

    @staticmethod
    def capture(company, portfolio, market):
        shares = [p.market_share for p in portfolio.active()]
        rivals = [c.valuation for c in market.competitors]
        return AchievementSnapshot(
            cash=company.cash,
            total_users=company.total_users,
            valuation=company.valuation,
            products_launched=len(portfolio.owned),
            active_products=len(portfolio.active()),
            best_market_share=max(shares) if shares else 0.0,
            top_competitor_valuation=max(rivals) if rivals else 0.0,
            competitor_count=len(rivals),
        )


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    predicate: Callable[[AchievementSnapshot], bool]


@dataclass
class Achievement:
    id: str
    title: str
    description: str
    unlocked_date: Optional[date] = None


def _market_leader(s):
    return s.competitor_count > 0 and s.valuation > s.top_competitor_valuation


ACHIEVEMENTS: List[AchievementDefinition] = [
    # Money
    AchievementDefinition("first_10_million", "First $10 Million",
                          "Accumulate $10,000,000 in cash",
                          lambda s: s.cash >= 10_000_000),
    # Users
    AchievementDefinition("million_users", "Million Users",
                          "Reach 1,000,000 total users",
                          lambda s: s.total_users >= 1_000_000),
    AchievementDefinition("ten_million_users", "10 Million Users",
                          "Reach 10,000,000 total users",
                          lambda s: s.total_users >= 10_000_000),
    AchievementDefinition("hundred_million_users", "100 Million Users",
                          "Reach 100,000,000 total users",
                          lambda s: s.total_users >= 100_000_000),
    AchievementDefinition("billion_users", "Billion Users",
                          "Reach 1,000,000,000 total users",
                          lambda s: s.total_users >= 1_000_000_000),
    # Valuation
    AchievementDefinition("unicorn", "Unicorn",
                          "Reach a $1 billion valuation",
                          lambda s: s.valuation >= 1_000_000_000),
    AchievementDefinition("decacorn", "Decacorn",
                          "Reach a $10 billion valuation",
                          lambda s: s.valuation >= 10_000_000_000),
    AchievementDefinition("hectocorn", "Hectocorn",
                          "Reach a $100 billion valuation",
                          lambda s: s.valuation >= 100_000_000_000),
    # Products & market
    AchievementDefinition("first_launch", "Shipped It",
                          "Launch your first product",
                          lambda s: s.products_launched >= 1),
    AchievementDefinition("product_portfolio", "Product Portfolio",
                          "Run five active products at once",
                          lambda s: s.active_products >= 5),
    AchievementDefinition("market_contender", "Market Contender",
                          "Hold 25% of a product category",
                          lambda s: s.best_market_share >= 25),
    AchievementDefinition("market_dominator", "Market Dominator",
                          "Hold 50% of a product category",
                          lambda s: s.best_market_share >= 50),
    AchievementDefinition("market_leader", "Market Leader",
                          "Be worth more than every competitor",
                          _market_leader),
]

ACHIEVEMENTS_BY_ID: Dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


def evaluate(snapshot, definitions=ACHIEVEMENTS):
    """Every definition whose predicate currently holds (no state is read or written)"""
    return [d for d in definitions if d.predicate(snapshot)]


@dataclass
class AchievementBook:
    """The unlocked set, in unlock order"""
    unlocked: List[Achievement] = field(default_factory=list)

    def is_unlocked(self, achievement_id):
        return any(a.id == achievement_id for a in self.unlocked)

    def unlock(self, definition, on=None):
        """Record an unlock; returns the new Achievement, or None if already present"""
        if self.is_unlocked(definition.id):
            return None
        achievement = Achievement(definition.id, definition.title, definition.description, on)
        self.unlocked.append(achievement)
        logger.info("Achievement unlocked: %s", definition.title)
        return achievement

    def unlock_id(self, achievement_id, on=None):
        return self.unlock(ACHIEVEMENTS_BY_ID[achievement_id], on)

    def check(self, snapshot, on=None, definitions=ACHIEVEMENTS):
        """Evaluate and unlock; returns only the achievements new this call"""
        fresh = []
        for definition in evaluate(snapshot, definitions):
            achievement = self.unlock(definition, on)
            if achievement:
                fresh.append(achievement)
        return fresh

    def ids(self):
        return [a.id for a in self.unlocked]

    def __len__(self):
        return len(self.unlocked)
