"""
Market Simulator: competitor roster, category sizes and trends, timed events
and competitor behaviour (growth, launches, acquisitions, valuations).
"""

import logging
import math
from datetime import date
from typing import Dict, List

from catalog import (EVENT_CATALOG, NAME_PREFIXES, NAME_SUFFIXES, PRODUCT_TYPES, SCRIPTED_EVENTS,
                     MarketCategory, ProductTypeKey, product_type)
from entities import Acquisition, CompetitorCompany, MarketEvent, Product, clamp, money, new_id
from sim_config import MARKET_CONFIG, GROWTH_CONFIG

logger = logging.getLogger(__name__)


def event_from_template(template, effect_date, rng):
    return MarketEvent(
        id=new_id(rng),
        title=template.title,
        description=template.description,
        effect_date=effect_date,
        duration=template.duration,
        kind=template.kind,
        multiplier=template.multiplier,
        categories=template.categories,
    )


def random_company_name(rng):
    return f"{rng.choice(NAME_PREFIXES)}{rng.choice(NAME_SUFFIXES)}"


def random_competitor(rng, config=MARKET_CONFIG):
    founded = date(2000 + rng.randrange(4), rng.randrange(12) + 1, 1)
    company = CompetitorCompany(
        id=new_id(rng),
        name=random_company_name(rng),
        valuation=rng.uniform(1_000_000, 5_001_000_000),
        reputation=rng.randint(1, 100),
        founded_date=founded,
        cash=rng.uniform(100_000, 1_000_100_000),
        growth_rate=rng.uniform(0.9, 1.2),
        aggressive=rng.random() < config.aggressive_share,
    )

    keys = list(ProductTypeKey)
    for _ in range(rng.randint(1, 3)):
        spec = PRODUCT_TYPES[rng.choice(keys)]
        company.products.append(Product(
            id=new_id(rng),
            type=spec.key,
            name=f"{company.name} {spec.name}",
            quality=float(rng.randint(1, 10)),
            users=math.floor(rng.random() * spec.max_market_size * 0.1),
            launch_date=founded,
        ))
    return company


def competitor_valuation(company, config=MARKET_CONFIG):
    """Users x 50 + sum(users x quality x 10) + 80% of cash, at least $1M"""
    valuation = company.total_users * 50
    valuation += sum(p.users * p.quality * 10 for p in company.products)
    valuation += company.cash * config.valuation_cash_weight
    return max(valuation, config.valuation_floor)


class MarketSimulator:
    """Owns everything outside the player's company"""

    def __init__(self, config=None, growth=None):
        self.config = config if config else MARKET_CONFIG
        self.growth = growth if growth else GROWTH_CONFIG
        self.competitors: List[CompetitorCompany] = []
        self.market_sizes: Dict[MarketCategory, int] = {c: 0 for c in MarketCategory}
        self.trends: Dict[MarketCategory, float] = {c: 1.0 for c in MarketCategory}
        self.events: List[MarketEvent] = []
        self.acquisitions: List[Acquisition] = []
        self.initialized = False

    # ==================== Setup ====================

    def initialize(self, rng, count=None):
        """Generate the roster, starting trends and scripted events (runs once)"""
        if self.initialized:
            return
        count = self.config.competitor_count if count is None else count
        self.competitors = [random_competitor(rng, self.config) for _ in range(count)]
        self.trends = {c: 1 + rng.random() * 0.2 for c in MarketCategory}
        self.recompute_market_sizes()
        self.events = [event_from_template(t, when, rng) for when, t in SCRIPTED_EVENTS]
        self.initialized = True
        logger.info("Market initialized with %d competitors", len(self.competitors))

    # ==================== Read accessors ====================

    def market_size(self, category):
        return self.market_sizes.get(category, 0)

    def trend(self, category):
        return self.trends.get(category, 1.0)

    def active_events(self, on):
        return [e for e in self.events if e.is_active(on)]

    def find_company(self, company_id):
        for company in self.competitors:
            if company.id == company_id:
                return company
        return None

    def top_companies(self, count=10):
        return sorted(self.competitors, key=lambda c: c.valuation, reverse=True)[:count]

    def competitors_by_product_type(self, type_key):
        return [c for c in self.competitors if any(p.type == type_key for p in c.products)]

    def strongest_category(self):
        return max(self.trends, key=self.trends.get)

    # ==================== Trends & events ====================

    def update_trends(self, rng, on):
        active = self.active_events(on)
        noise = self.config.trend_noise
        for category in MarketCategory:
            change = rng.uniform(1 - noise, 1 + noise)
            for event in active:
                if event.applies_to(category):
                    change *= event.multiplier
            self.trends[category] = clamp(self.trend(category) * change,
                                          self.config.trend_min, self.config.trend_max)

    def generate_event(self, rng, on):
        """Maybe append one catalog event starting this month"""
        if rng.random() >= self.config.event_probability_per_month:
            return None
        event = event_from_template(rng.choice(EVENT_CATALOG), on, rng)
        self.events.append(event)
        logger.info("Market event: %s (%d months)", event.title, event.duration)
        return event

    # ==================== Competitor growth ====================

    def _grow_product(self, company, product, rng, on):
        spec = product.spec
        trend = self.trend(spec.category)
        rate = ((product.quality / 10) * 1.5
                * company.growth_rate
                * trend
                * rng.uniform(0.95, 1.05)) - 1
        new_users = max(0, math.floor(product.users * (1 + rate)))
        product.users = min(new_users, spec.max_market_size)

        if rng.random() < self.config.quality_bump_chance:
            product.set_quality(product.quality + self.config.quality_bump)
            product.last_update = on
        if company.aggressive and rng.random() < self.config.aggressive_bump_chance:
            product.set_quality(product.quality + self.config.quality_bump)
            product.last_update = on

        months = product.months_since_update(on)
        if months is not None and months > self.growth.staleness_months:
            product.set_quality(product.quality - self.growth.quality_decay)

    def update_companies_growth(self, rng, on, player_products=()):
        """Grow every rival product, then refresh category sizes and shares"""
        for company in self.competitors:
            for product in company.products:
                self._grow_product(company, product, rng, on)
        self.recompute_market_sizes(player_products)
        self.recompute_market_shares()

    def recompute_market_sizes(self, player_products=()):
        sizes = {c: 0 for c in MarketCategory}
        for company in self.competitors:
            for product in company.products:
                sizes[product.category] += product.users
        for product in player_products:
            if product.is_active:
                sizes[product.category] += product.users
        self.market_sizes = sizes

    def recompute_market_shares(self):
        for company in self.competitors:
            for product in company.products:
                size = self.market_size(product.category)
                product.set_market_share(product.users / size * 100 if size > 0 else 0.0)

    # ==================== Competitor actions ====================

    def launch_chance(self, company):
        cfg = self.config
        return (cfg.launch_base_chance
                + (cfg.launch_aggressive_bonus if company.aggressive else 0)
                + cfg.launch_small_portfolio_bonus / max(1, len(company.products)))

    def maybe_launch_product(self, company, rng, on):
        if rng.random() >= self.launch_chance(company):
            return None
        spec = PRODUCT_TYPES[rng.choice(list(ProductTypeKey))]
        trending = self.trend(spec.category) > self.config.trending_threshold
        if not trending and rng.random() >= self.config.irrational_launch_chance:
            return None
        product = Product(
            id=new_id(rng),
            type=spec.key,
            name=f"{company.name} {spec.name}",
            quality=float(min(10, rng.randint(3, 7))),
            users=0,
            launch_date=on,
            last_update=on,
        )
        company.products.append(product)
        return product

    def acquisition_chance(self, company):
        cfg = self.config
        return cfg.acquisition_base_chance + (cfg.acquisition_aggressive_bonus if company.aggressive else 0)

    def acquisition_targets(self, buyer):
        cfg = self.config
        return [t for t in self.competitors
                if t.id != buyer.id
                and t.total_users < buyer.total_users * cfg.target_user_ratio
                and t.valuation < buyer.cash * cfg.target_valuation_ratio]

    def maybe_acquire(self, buyer, rng, on):
        cfg = self.config
        if buyer.total_users <= cfg.acquisition_min_users or buyer.cash <= cfg.acquisition_min_cash:
            return None
        if rng.random() >= self.acquisition_chance(buyer):
            return None
        targets = self.acquisition_targets(buyer)
        if not targets:
            return None
        target = rng.choice(targets)
        return self.merge(buyer, target, rng, on)

    def merge(self, buyer, target, rng, on):
        """Destructive merge: target's products move to buyer, target leaves the roster"""
        moved = []
        for product in target.products:
            copy = Product(
                id=new_id(rng),
                type=product.type,
                name=f"{buyer.name} {product_type(product.type).name}",
                quality=product.quality,
                users=product.users,
                market_share=product.market_share,
                launch_date=product.launch_date,
                last_update=on,
            )
            buyer.products.append(copy)
            moved.append(copy.id)

        cost = min(buyer.cash, target.valuation * self.config.acquisition_premium)
        buyer.cash -= cost
        self.competitors = [c for c in self.competitors if c.id != target.id]

        record = Acquisition(date=on, buyer=buyer.id, target=target.id, cost=cost, product_ids=moved)
        self.acquisitions.append(record)
        logger.info("%s acquired %s for %s", buyer.name, target.name, money(cost))
        return record

    def simulate_competitor_actions(self, rng, on):
        """Launches, acquisitions and valuation refresh for every rival"""
        completed = []
        removed = set()
        for company in list(self.competitors):
            if company.id in removed:
                continue
            self.maybe_launch_product(company, rng, on)
            record = self.maybe_acquire(company, rng, on)
            if record:
                removed.add(record.target)
                completed.append(record)
            company.valuation = competitor_valuation(company, self.config)
        return completed
