"""Shared fixtures for the simulation tests"""

import random
from datetime import date

import pytest

from catalog import ProductTypeKey
from engine import new_game
from entities import Company, CompetitorCompany, Product
from ledger import EconomyLedger
from market import MarketSimulator
from notifications import NotificationSink
from sim_clock import Clock
from sim_config import MarketConfig, SimulationSettings
from snapshot import NullSaver


class FakeTime:
    """Monotonic clock the tests move by hand"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def sink():
    return NotificationSink()


@pytest.fixture
def ledger():
    return EconomyLedger(Company(name="TestCo"))


@pytest.fixture
def quiet_market_config():
    """Every random branch switched off"""
    return MarketConfig(
        competitor_count=0,
        event_probability_per_month=0.0,
        quality_bump_chance=0.0,
        aggressive_bump_chance=0.0,
        launch_base_chance=0.0,
        launch_aggressive_bonus=0.0,
        launch_small_portfolio_bonus=0.0,
        acquisition_base_chance=0.0,
        acquisition_aggressive_bonus=0.0,
    )


@pytest.fixture
def empty_market(quiet_market_config):
    return MarketSimulator(config=quiet_market_config)


@pytest.fixture
def small_settings():
    settings = SimulationSettings.small_market(competitors=20)
    return settings


@pytest.fixture
def engine(small_settings):
    return new_game(seed=7, settings=small_settings, saver=NullSaver())


@pytest.fixture
def fake_time():
    return FakeTime()


def make_product(product_id, type_key=ProductTypeKey.SOCIAL_NETWORK, users=0, quality=5.0, **kwargs):
    return Product(id=product_id, type=type_key, name=f"Product {product_id}", quality=quality, users=users,
                   **kwargs)


def make_competitor(company_id, products=(), cash=10_000_000, valuation=5_000_000, aggressive=False,
                    growth_rate=1.0):
    return CompetitorCompany(
        id=company_id,
        name=f"Rival {company_id}",
        valuation=valuation,
        reputation=50,
        founded_date=date(2001, 1, 1),
        cash=cash,
        growth_rate=growth_rate,
        aggressive=aggressive,
        products=list(products),
    )
