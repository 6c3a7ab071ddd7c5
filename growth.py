"""
Product Growth Model: next-month users, quality decay, market share and
revenue for the player's active products.

Monthly growth rate = quality + trend + resources + marketing (+/- 2% noise).
Products under 100 users skip the percentage model and get users straight
from marketing spend.
"""

import logging
import math
from dataclasses import dataclass

from notifications import Severity
from sim_config import ECONOMY_CONFIG, GROWTH_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class GrowthResult:
    total_users: int = 0
    revenue: float = 0.0
    products_updated: int = 0


# ==================== Factors ====================

def quality_factor(quality):
    """-0.3 at quality 1, +0.5 at quality 5, +1.5 at quality 10"""
    return (quality / 10) * 2 - 0.5


def trend_factor(trend):
    return trend - 1


def resource_capacity(employees, servers, config=GROWTH_CONFIG):
    """Users the company can serve: the tighter of staff and hardware"""
    return min(employees * config.users_per_employee, servers * config.users_per_server)


def resource_factor(capacity, users):
    if capacity > 1.5 * users:
        return 1.0
    if capacity > 1.1 * users:
        return 0.7
    if capacity > users:
        return 0.3
    return -0.2  # under-resourced products churn


def market_saturation(category_size, max_market_size):
    if max_market_size <= 0:
        return 0.0
    return category_size / max_market_size


def marketing_cost_per_user(saturation):
    return 5 + 15 * saturation


def marketing_factor(budget, users, quality, saturation, cap=GROWTH_CONFIG.marketing_cap):
    if users <= 0 or budget <= 0:
        return 0.0
    reached = budget / marketing_cost_per_user(saturation)
    return min(cap, (reached / users) * quality / 10)


def marketing_injection(budget, quality):
    """Users bought directly by marketing for a product with no real base yet"""
    return (budget / 1000) * 100 * (quality / 5)


def growth_rate(quality, users, trend, capacity, budget, saturation, rng, config=GROWTH_CONFIG):
    rate = (quality_factor(quality)
            + trend_factor(trend)
            + resource_factor(capacity, users)
            + marketing_factor(budget, users, quality, saturation, config.marketing_cap))
    return rate + rng.uniform(-config.noise, config.noise)


def project_users(product, trend, capacity, budget, category_size, rng, config=GROWTH_CONFIG):
    """Next month's user count, clamped to [0, min(capacity, max market size)]"""
    max_market = product.spec.max_market_size
    if product.users < config.new_product_threshold:
        new_users = math.floor(product.users + marketing_injection(budget, product.quality))
    else:
        saturation = market_saturation(category_size, max_market)
        rate = growth_rate(product.quality, product.users, trend, capacity, budget, saturation, rng, config)
        new_users = math.floor(product.users * (1 + rate))
    return max(0, min(new_users, capacity, max_market))


# ==================== Quality ====================

def apply_staleness(product, on, config=GROWTH_CONFIG):
    """Lose quality once a product has gone too long without an update.

    Returns True when the decay pushed quality below the warning line.
    """
    months = product.months_since_update(on)
    if months is None or months <= config.staleness_months:
        return False
    before = product.quality
    product.set_quality(max(1.0, before - config.quality_decay))
    return before >= config.quality_warning > product.quality


def market_share(users, category_size):
    if category_size <= 0:
        return 0.0
    return users / category_size * 100


# ==================== Monthly update ====================

def update_player_products(portfolio, company, market, rng, sink, on,
                           config=GROWTH_CONFIG, economy=ECONOMY_CONFIG):
    """Grow every active product one month; the caller credits the revenue"""
    result = GrowthResult()
    active = portfolio.active()
    if not active:
        return result

    capacity = resource_capacity(company.employees, company.servers, config)
    budget = company.marketing_budget

    for product in active:
        category = product.category
        category_size = market.market_size(category)
        trend = market.trend(category)

        new_users = project_users(product, trend, capacity, budget, category_size, rng, config)
        logger.debug("%s: %d -> %d users", product.name, product.users, new_users)

        product.revenue = new_users * economy.revenue_per_user
        product.set_users(new_users, on)

        if apply_staleness(product, on, config):
            sink.add(f"{product.name} quality is declining. Consider updating the product.",
                     Severity.WARNING, on)

        product.set_market_share(market_share(new_users, category_size))

        result.total_users += new_users
        result.revenue += product.revenue
        result.products_updated += 1

    return result
