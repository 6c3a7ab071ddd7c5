"""
Configuration for the software-market simulation
"""
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from dotenv import load_dotenv


@dataclass
class EconomyConfig:
    """Company finances"""
    starting_cash: float = 1_000_000
    starting_reputation: int = 50
    employee_monthly_cost: int = 25_000  # salary per head per month
    server_monthly_cost: int = 10
    hire_cost_per_employee: int = 17_000  # one-off
    server_purchase_cost: int = 10
    tax_rate: float = 0.23
    revenue_per_user: int = 12  # $ per user per month

    # Valuation (users x 50 + cash x 0.5, never below 10% of cash)
    valuation_per_user: int = 50
    valuation_cash_weight: float = 0.5
    valuation_cash_floor: float = 0.1


@dataclass
class GrowthConfig:
    """Player product growth model"""
    users_per_employee: int = 5000
    users_per_server: int = 100

    noise: float = 0.02  # +/- 2% per month
    marketing_cap: float = 0.2
    new_product_threshold: int = 100  # below this, marketing injects users directly

    staleness_months: int = 6
    quality_decay: float = 0.2
    quality_warning: float = 5.0


@dataclass
class MarketConfig:
    """Competitors, trends and events"""
    competitor_count: int = 300
    aggressive_share: float = 0.3

    # Trends
    trend_min: float = 0.9
    trend_max: float = 1.5
    trend_noise: float = 0.05  # 0.95-1.05 random walk

    # Events
    event_probability_per_month: float = 0.10

    # Competitor product quality
    quality_bump_chance: float = 0.05
    aggressive_bump_chance: float = 0.10
    quality_bump: float = 0.5

    # Competitor launches
    launch_base_chance: float = 0.02
    launch_aggressive_bonus: float = 0.03
    launch_small_portfolio_bonus: float = 0.05
    trending_threshold: float = 1.05
    irrational_launch_chance: float = 0.3

    # Acquisitions
    acquisition_min_users: int = 1_000_000
    acquisition_min_cash: int = 100_000_000
    acquisition_base_chance: float = 0.01
    acquisition_aggressive_bonus: float = 0.02
    target_user_ratio: float = 0.5
    target_valuation_ratio: float = 0.7
    acquisition_premium: float = 2.0

    # Competitor valuation
    valuation_floor: int = 1_000_000
    valuation_cash_weight: float = 0.8


@dataclass
class SchedulerConfig:
    """Real-time pacing (does not change simulated results)"""
    base_month_ms: int = 60_000  # 1 month = 60 seconds at 1x
    allowed_speeds: Tuple[int, ...] = (1, 2, 4)
    first_tick_delay_ms: int = 1000
    watchdog_interval_ms: int = 5000


ECONOMY_CONFIG = EconomyConfig()
GROWTH_CONFIG = GrowthConfig()
MARKET_CONFIG = MarketConfig()
SCHEDULER_CONFIG = SchedulerConfig()

START_DATE = date(2004, 1, 1)


@dataclass
class SimulationSettings:
    """Everything needed to start a game"""
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    growth: GrowthConfig = field(default_factory=GrowthConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    seed: Optional[int] = None
    start_date: date = START_DATE
    company_name: str = "Startup"
    save_path: Optional[str] = None

    @staticmethod
    def baseline():
        return SimulationSettings()

    @staticmethod
    def small_market(competitors=30):
        """Fewer competitors, for quick headless runs"""
        settings = SimulationSettings()
        settings.market.competitor_count = competitors
        return settings

    @staticmethod
    def from_env(dotenv_path=None):
        """Baseline settings with overrides from the environment / .env file"""
        load_dotenv(dotenv_path=dotenv_path, override=False)
        settings = SimulationSettings()

        seed = _env_int("TYCOON_SEED")
        if seed is not None:
            settings.seed = seed

        competitors = _env_int("TYCOON_COMPETITORS")
        if competitors is not None:
            settings.market.competitor_count = max(0, competitors)

        base_ms = _env_int("TYCOON_BASE_MONTH_MS")
        if base_ms is not None:
            settings.scheduler.base_month_ms = max(1, base_ms)

        cash = _env_float("TYCOON_STARTING_CASH")
        if cash is not None:
            settings.economy.starting_cash = max(0.0, cash)

        settings.save_path = os.getenv("TYCOON_SAVE_PATH") or settings.save_path
        settings.company_name = os.getenv("TYCOON_COMPANY_NAME") or settings.company_name
        return settings


def _env_int(name):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
