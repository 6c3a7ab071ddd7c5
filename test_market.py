"""Tests for the Market Simulator"""

import random
from dataclasses import replace
from datetime import date

import pytest

from catalog import EVENT_CATALOG, EffectKind, MarketCategory, ProductTypeKey
from conftest import make_competitor, make_product
from entities import MarketEvent, ProductStatus
from market import MarketSimulator, competitor_valuation

ON = date(2004, 6, 1)


def _event(effect_date, duration, kind=EffectKind.CATEGORY_GROWTH, multiplier=1.5,
           categories=(MarketCategory.SOCIAL_NETWORKS,)):
    return MarketEvent("e", "Event", "", effect_date, duration, kind, multiplier, categories)


# ==================== Events ====================

@pytest.mark.parametrize("on,active", [
    (date(2005, 2, 28), False),
    (date(2005, 3, 1), True),
    (date(2006, 1, 15), True),
    (date(2007, 3, 1), True),
    (date(2007, 3, 2), False),
])
def test_event_window_is_inclusive(on, active):
    assert _event(date(2005, 3, 1), 24).is_active(on) is active


def test_event_scope():
    category_event = _event(ON, 6)
    assert category_event.applies_to(MarketCategory.SOCIAL_NETWORKS)
    assert not category_event.applies_to(MarketCategory.DEVICES)
    global_event = _event(ON, 6, kind=EffectKind.GROWTH_MULTIPLIER, categories=())
    assert all(global_event.applies_to(c) for c in MarketCategory)


def test_generate_event_respects_probability(quiet_market_config, rng):
    market = MarketSimulator(config=quiet_market_config)
    assert market.generate_event(rng, ON) is None

    market.config = replace(quiet_market_config, event_probability_per_month=1.0)
    event = market.generate_event(rng, ON)
    assert event is not None
    assert event.effect_date == ON
    assert event.title in {t.title for t in EVENT_CATALOG}
    assert market.events == [event]


# ==================== Initialization ====================

def test_initialize_builds_roster(rng):
    market = MarketSimulator()
    market.initialize(rng, count=40)

    assert len(market.competitors) == 40
    assert len({c.id for c in market.competitors}) == 40
    for company in market.competitors:
        assert 1 <= len(company.products) <= 3
        assert 0.9 <= company.growth_rate <= 1.2
        assert 1 <= company.reputation <= 100
        assert 2000 <= company.founded_date.year <= 2003
        for product in company.products:
            assert 1 <= product.quality <= 10
            assert product.users <= product.spec.max_market_size * 0.1

    assert all(1.0 <= t <= 1.2 for t in market.trends.values())
    assert sum(market.market_sizes.values()) == sum(c.total_users for c in market.competitors)
    titles = [e.title for e in market.events]
    assert titles == ["Tech Boom", "Social Media Revolution"]


def test_initialize_runs_once(rng):
    market = MarketSimulator()
    market.initialize(rng, count=5)
    first = list(market.competitors)
    market.initialize(rng, count=50)
    assert market.competitors == first


def test_scripted_social_event_window(rng):
    market = MarketSimulator()
    market.initialize(rng, count=0)
    social = next(e for e in market.events if e.title == "Social Media Revolution")
    assert social.effect_date == date(2005, 3, 1)
    assert social.duration == 24
    assert social in market.active_events(date(2007, 3, 1))
    assert social not in market.active_events(date(2007, 4, 1))


# ==================== Trends ====================

def test_trends_stay_in_bounds(rng):
    market = MarketSimulator()
    market.events = [_event(date(2004, 1, 1), 120, EffectKind.GROWTH_MULTIPLIER, 1.6, ())]
    for month in range(1, 13):
        market.update_trends(rng, date(2004, month, 1))
        assert all(t == 1.5 for t in market.trends.values())

    market.events = [_event(date(2004, 1, 1), 120, EffectKind.GROWTH_MULTIPLIER, 0.5, ())]
    market.update_trends(rng, date(2005, 1, 1))
    assert all(t == 0.9 for t in market.trends.values())


def test_category_event_only_moves_its_category(rng, quiet_market_config):
    market = MarketSimulator(config=replace(quiet_market_config, trend_noise=0.0))
    market.events = [_event(date(2004, 1, 1), 12, multiplier=1.2)]
    market.update_trends(rng, ON)
    assert market.trend(MarketCategory.SOCIAL_NETWORKS) == pytest.approx(1.2)
    assert market.trend(MarketCategory.DEVICES) == pytest.approx(1.0)


# ==================== Competitor growth ====================

def test_competitor_growth_rate(empty_market, rng):
    product = make_product("p", users=1000, quality=10)
    empty_market.competitors = [make_competitor("a", [product], growth_rate=1.0)]
    empty_market.update_companies_growth(rng, ON)
    # 10/10 * 1.5 * 1.0 * 1.0 * U(0.95, 1.05) - 1
    assert 1425 <= product.users <= 1575


def test_competitor_growth_clamped_to_max_market(empty_market, rng):
    product = make_product("p", type_key=ProductTypeKey.DATING_APP, users=500_000_000, quality=10)
    empty_market.competitors = [make_competitor("a", [product], growth_rate=1.2)]
    empty_market.update_companies_growth(rng, ON)
    assert product.users == 500_000_000


def test_competitor_staleness(empty_market, rng):
    product = make_product("p", users=1000, quality=5, last_update=date(2004, 1, 1))
    empty_market.competitors = [make_competitor("a", [product])]
    empty_market.update_companies_growth(rng, date(2004, 9, 1))
    assert product.quality == pytest.approx(4.8)


def test_quality_bump_refreshes_last_update(quiet_market_config, rng):
    market = MarketSimulator(config=replace(quiet_market_config, quality_bump_chance=1.0))
    product = make_product("p", users=1000, quality=5, last_update=date(2003, 1, 1))
    market.competitors = [make_competitor("a", [product])]
    market.update_companies_growth(rng, ON)
    assert product.quality == 5.5
    assert product.last_update == ON


def test_market_sizes_include_player_products(empty_market):
    rival = make_product("r", users=3000)
    mine = make_product("m", users=1000)
    retired = make_product("x", users=9999)
    retired.status = ProductStatus.DISCONTINUED
    empty_market.competitors = [make_competitor("a", [rival])]

    empty_market.recompute_market_sizes([mine, retired])
    empty_market.recompute_market_shares()
    assert empty_market.market_size(MarketCategory.SOCIAL_NETWORKS) == 4000
    assert rival.market_share == 75


def test_competitor_shares_are_clamped(empty_market):
    rival = make_product("r", users=3000)
    empty_market.competitors = [make_competitor("a", [rival])]
    empty_market.market_sizes[MarketCategory.SOCIAL_NETWORKS] = 1000
    empty_market.recompute_market_shares()
    assert rival.market_share == 100


# ==================== Competitor actions ====================

def test_forced_launch(quiet_market_config, rng):
    config = replace(quiet_market_config, launch_base_chance=1.0, irrational_launch_chance=1.0)
    market = MarketSimulator(config=config)
    company = make_competitor("a")
    market.competitors = [company]
    market.simulate_competitor_actions(rng, ON)

    assert len(company.products) == 1
    launched = company.products[0]
    assert launched.users == 0
    assert 3 <= launched.quality <= 7
    assert launched.last_update == ON
    assert launched.name.startswith(company.name)


def test_acquisition_merges_target(quiet_market_config, rng):
    config = replace(quiet_market_config, acquisition_base_chance=1.0)
    market = MarketSimulator(config=config)
    a_product = make_product("a1", users=2_000_000)
    b_products = [make_product("b1", users=300_000), make_product("b2", users=200_000,
                                                                 type_key=ProductTypeKey.MAPS)]
    a = make_competitor("A", [a_product], cash=200_000_000)
    b = make_competitor("B", b_products, valuation=50_000_000)
    market.competitors = [a, b]

    records = market.simulate_competitor_actions(rng, ON)

    assert market.competitors == [a]
    assert len(records) == 1
    record = records[0]
    assert record.buyer == "A" and record.target == "B"
    assert record.cost == 100_000_000
    assert a.cash == 100_000_000

    moved = a.products[1:]
    assert len(moved) == 2
    assert {p.id for p in moved}.isdisjoint({"b1", "b2"})
    assert [p.users for p in moved] == [300_000, 200_000]
    assert all(p.name.startswith(a.name) for p in moved)
    assert record.product_ids == [p.id for p in moved]
    assert market.acquisitions == records


def test_acquisition_pays_at_most_cash(quiet_market_config, rng):
    config = replace(quiet_market_config, acquisition_base_chance=1.0, target_valuation_ratio=1.0)
    market = MarketSimulator(config=config)
    a = make_competitor("A", [make_product("a1", users=2_000_000)], cash=150_000_000)
    b = make_competitor("B", [make_product("b1", users=10)], valuation=100_000_000)
    market.competitors = [a, b]
    market.simulate_competitor_actions(rng, ON)
    assert a.cash == 0


def test_small_companies_do_not_acquire(quiet_market_config, rng):
    config = replace(quiet_market_config, acquisition_base_chance=1.0)
    market = MarketSimulator(config=config)
    a = make_competitor("A", [make_product("a1", users=900_000)], cash=500_000_000)
    b = make_competitor("B", [make_product("b1", users=10)], valuation=1_000_000)
    market.competitors = [a, b]
    assert market.simulate_competitor_actions(rng, ON) == []
    assert len(market.competitors) == 2


def test_no_matching_target(quiet_market_config, rng):
    config = replace(quiet_market_config, acquisition_base_chance=1.0)
    market = MarketSimulator(config=config)
    a = make_competitor("A", [make_product("a1", users=2_000_000)], cash=200_000_000)
    b = make_competitor("B", [make_product("b1", users=1_500_000)], valuation=10_000_000)
    market.competitors = [a, b]
    assert market.simulate_competitor_actions(rng, ON) == []


def test_competitor_valuation():
    low = make_competitor("a", [make_product("p", users=1000, quality=5)], cash=1_000_000)
    assert competitor_valuation(low) == 1_000_000
    high = make_competitor("b", [make_product("p", users=1000, quality=5)], cash=10_000_000)
    assert competitor_valuation(high) == pytest.approx(8_100_000)


def test_valuations_recomputed_each_pass(empty_market, rng):
    company = make_competitor("a", [make_product("p", users=1000, quality=5)], cash=10_000_000, valuation=1)
    empty_market.competitors = [company]
    empty_market.simulate_competitor_actions(rng, ON)
    assert company.valuation == pytest.approx(8_100_000)


# ==================== Accessors ====================

def test_top_companies_and_type_lookup(empty_market):
    a = make_competitor("a", [make_product("p1")], valuation=5)
    b = make_competitor("b", [make_product("p2", type_key=ProductTypeKey.MAPS)], valuation=50)
    c = make_competitor("c", [], valuation=500)
    empty_market.competitors = [a, b, c]
    assert empty_market.top_companies(2) == [c, b]
    assert empty_market.competitors_by_product_type(ProductTypeKey.MAPS) == [b]
    assert empty_market.find_company("a") is a
    assert empty_market.find_company("zzz") is None


def test_full_month_keeps_invariants():
    rng = random.Random(99)
    market = MarketSimulator()
    market.initialize(rng, count=60)
    for month in range(1, 37):
        on = date(2004 + (month - 1) // 12, (month - 1) % 12 + 1, 1)
        market.update_trends(rng, on)
        market.generate_event(rng, on)
        market.update_companies_growth(rng, on)
        market.simulate_competitor_actions(rng, on)
        for company in market.competitors:
            assert company.valuation >= 1_000_000
            assert company.cash >= 0
            for product in company.products:
                assert product.users >= 0
                assert 1 <= product.quality <= 10
                assert 0 <= product.market_share <= 100
