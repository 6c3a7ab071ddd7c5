"""
Software Tycoon - Simulation Engine (Pure Logic, No UI)
=======================================================
Headless month-stepping engine for the software-market simulation.
Dashboards, drivers and analytics scripts all sit on top of this module.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np

from achievements import ACHIEVEMENTS_BY_ID, AchievementBook, AchievementSnapshot
from catalog import ProductTypeKey, product_type, types_in_category
from entities import Acquisition, MarketEvent, ResourceAllocation, money
from growth import resource_capacity, update_player_products
from ledger import EconomyLedger
from market import MarketSimulator
from notifications import NotificationSink, Severity
from portfolio import Portfolio
from sim_clock import Clock, SimulationError
from sim_config import SimulationSettings
from snapshot import JsonFileSaver, NullSaver, to_snapshot

logger = logging.getLogger(__name__)


# ==================== Errors ====================

class UnknownOperationError(SimulationError, KeyError):
    """Name not present on the mutation channel"""


# ==================== Data Classes ====================

@dataclass
class SimulationContext:
    """All simulation state, passed by reference into the update functions"""
    settings: SimulationSettings
    rng: random.Random
    clock: Clock
    ledger: EconomyLedger
    portfolio: Portfolio
    market: MarketSimulator
    achievements: AchievementBook
    notifications: NotificationSink
    saver: Any
    last_saved: Optional[date] = None
    reason: str = ""


@dataclass
class TickReport:
    """What happened during one simulated month"""
    date: date
    revenue: float = 0.0
    expenses: float = 0.0
    tax: float = 0.0
    profit: float = 0.0
    new_event: Optional[MarketEvent] = None
    acquisitions: List[Acquisition] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    bankrupt: bool = False
    saved: bool = False


# Named operations accepted by Engine.dispatch()
OPERATIONS = frozenset({
    # Monthly pipeline steps
    "advance_time",
    "update_cash",
    "pay_expenses",
    "pay_taxes",
    "calculate_valuation",
    "update_market_trends",
    "generate_market_event",
    "update_companies_growth",
    "simulate_competitor_actions",
    "unlock_achievement",
    "add_notification",
    "save_game",
    # Company management
    "set_company_name",
    "hire_employees",
    "fire_employees",
    "add_servers",
    "remove_servers",
    "set_marketing_budget",
    "update_reputation",
    "update_total_users",
    "update_valuation",
    # Products
    "update_product_users",
    "update_product_quality",
    "update_product_market_share",
    "start_development",
    "update_resource_allocation",
    "add_development_progress",
    "launch_product",
    "update_product",
    "discontinue_product",
    "acquire_product",
})


# ==================== Engine Class ====================

class Engine:
    """Pure simulation engine (no UI, no timers)"""

    def __init__(self, settings: Optional[SimulationSettings] = None, seed: Optional[int] = None,
                 saver=None):
        self.settings = settings if settings else SimulationSettings.baseline()
        self._seed = seed if seed is not None else self.settings.seed

        if saver is None:
            saver = JsonFileSaver(self.settings.save_path) if self.settings.save_path else NullSaver()

        start = self.settings.start_date
        ledger = EconomyLedger(config=self.settings.economy)
        ledger.company.name = self.settings.company_name
        ledger.company.founded_date = start

        self.ctx = SimulationContext(
            settings=self.settings,
            rng=random.Random(self._seed),
            clock=Clock(current_date=start, start_date=start),
            ledger=ledger,
            portfolio=Portfolio(),
            market=MarketSimulator(config=self.settings.market, growth=self.settings.growth),
            achievements=AchievementBook(),
            notifications=NotificationSink(),
            saver=saver,
        )
        self.ctx.market.initialize(self.ctx.rng)

    # ==================== Read accessors ====================

    @property
    def clock(self):
        return self.ctx.clock

    @property
    def company(self):
        return self.ctx.ledger.company

    @property
    def current_date(self):
        return self.ctx.clock.current_date

    @property
    def products(self):
        return list(self.ctx.portfolio.owned)

    @property
    def products_in_development(self):
        return list(self.ctx.portfolio.in_development)

    def active_products(self):
        return self.ctx.portfolio.active()

    def find_product(self, product_id):
        return self.ctx.portfolio.find(product_id)

    @property
    def competitors(self):
        return list(self.ctx.market.competitors)

    def market_sizes(self):
        return dict(self.ctx.market.market_sizes)

    def trends(self):
        return dict(self.ctx.market.trends)

    def events(self):
        return list(self.ctx.market.events)

    def active_events(self):
        return self.ctx.market.active_events(self.current_date)

    def top_companies(self, count=10):
        return self.ctx.market.top_companies(count)

    @property
    def achievements(self):
        return list(self.ctx.achievements.unlocked)

    @property
    def notifications(self):
        return self.ctx.notifications

    @property
    def reason(self):
        return self.ctx.reason

    def snapshot(self):
        return to_snapshot(self.ctx)

    # ==================== Monthly tick ====================

    def tick_month(self):
        """Advance the simulation by exactly one month.

        Order: clock -> market -> player products -> expenses, tax and
        bankruptcy -> valuation -> achievements -> save. Later steps read the
        state the earlier ones already wrote.
        """
        ctx = self.ctx
        rng = ctx.rng
        ledger = ctx.ledger
        company = ledger.company

        on = ctx.clock.advance()
        report = TickReport(date=on)
        logger.debug("Tick -> %s", on.isoformat())

        # Market
        ctx.market.update_trends(rng, on)
        report.new_event = ctx.market.generate_event(rng, on)
        if report.new_event:
            ctx.reason = f"Market event: {report.new_event.title}."
            ctx.notifications.add(f"Market event: {report.new_event.title}. {report.new_event.description}",
                                  Severity.INFO, on)
        ctx.market.update_companies_growth(rng, on, ctx.portfolio.active())
        report.acquisitions = ctx.market.simulate_competitor_actions(rng, on)

        # Player products
        growth = update_player_products(ctx.portfolio, company, ctx.market, rng, ctx.notifications, on,
                                        self.settings.growth, self.settings.economy)
        ledger.update_total_users(growth.total_users)
        ledger.credit_revenue(growth.revenue, on)
        report.revenue = growth.revenue

        # Expenses, tax, bankruptcy
        expenses = ledger.monthly_expenses().total
        ledger.charge_expenses(expenses)
        report.expenses = expenses
        report.profit = growth.revenue - expenses
        report.tax = ledger.charge_tax(report.profit)
        report.bankrupt = ledger.check_bankruptcy(ctx.clock, ctx.notifications)
        if report.bankrupt:
            ctx.reason = f"Bankrupt in {on.strftime('%B %Y')}: expenses {money(expenses)}/month."

        # Valuation
        ledger.recompute_valuation()

        # Achievements
        snapshot = AchievementSnapshot.capture(company, ctx.portfolio, ctx.market)
        for achievement in ctx.achievements.check(snapshot, on):
            ctx.notifications.add(f"Achievement unlocked: {achievement.title}!", Severity.SUCCESS, on)
            report.achievements.append(achievement.id)

        if not report.bankrupt and not report.new_event:
            ctx.reason = (f"{on.strftime('%b %Y')}: cash {money(company.cash)}, "
                          f"{company.total_users:,} users, valuation {money(company.valuation)}.")

        report.saved = self.save_game()
        return report

    def force_tick(self):
        """Debug hook: one tick regardless of pause state"""
        return self.tick_month()

    # ==================== Mutation channel ====================

    def dispatch(self, name, **payload):
        """Apply one named operation; unknown names raise UnknownOperationError"""
        if name not in OPERATIONS:
            raise UnknownOperationError(name)
        return getattr(self, name)(**payload)

    def advance_time(self):
        return self.ctx.clock.advance()

    def update_cash(self, amount):
        return self.ctx.ledger.update_cash(amount, self.current_date)

    def pay_expenses(self, amount=None):
        return self.ctx.ledger.charge_expenses(amount)

    def pay_taxes(self, profit):
        return self.ctx.ledger.charge_tax(profit)

    def calculate_valuation(self):
        return self.ctx.ledger.recompute_valuation()

    def update_market_trends(self):
        self.ctx.market.update_trends(self.ctx.rng, self.current_date)

    def generate_market_event(self):
        return self.ctx.market.generate_event(self.ctx.rng, self.current_date)

    def update_companies_growth(self):
        self.ctx.market.update_companies_growth(self.ctx.rng, self.current_date, self.ctx.portfolio.active())

    def simulate_competitor_actions(self):
        return self.ctx.market.simulate_competitor_actions(self.ctx.rng, self.current_date)

    def unlock_achievement(self, achievement_id):
        """Unlock by id; a repeat unlock is a no-op returning None"""
        achievement = self.ctx.achievements.unlock(ACHIEVEMENTS_BY_ID[achievement_id], self.current_date)
        if achievement:
            self.ctx.notifications.add(f"Achievement unlocked: {achievement.title}!", Severity.SUCCESS,
                                       self.current_date)
        return achievement

    def add_notification(self, message, severity=Severity.INFO):
        if not isinstance(severity, Severity):
            severity = Severity(severity)
        return self.ctx.notifications.add(message, severity, self.current_date)

    def save_game(self):
        """Hand a snapshot to the saver; a failing saver becomes a warning, not an exception"""
        ctx = self.ctx
        try:
            ctx.saver.save(to_snapshot(ctx))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Save failed: %s", exc)
            ctx.notifications.add(f"Could not save the game: {exc}", Severity.WARNING, self.current_date)
            return False
        ctx.last_saved = self.current_date
        return True

    # Company management

    def set_company_name(self, name):
        self.ctx.ledger.set_company_name(name)

    def hire_employees(self, count):
        hired = self.ctx.ledger.hire_employees(count)
        self.ctx.reason = f"Hired {count} employees." if hired else f"Cannot afford to hire {count} employees."
        return hired

    def fire_employees(self, count):
        self.ctx.ledger.fire_employees(count)

    def add_servers(self, count):
        added = self.ctx.ledger.add_servers(count)
        self.ctx.reason = f"Added {count} servers." if added else f"Cannot afford {count} servers."
        return added

    def remove_servers(self, count):
        self.ctx.ledger.remove_servers(count)

    def set_marketing_budget(self, amount):
        self.ctx.ledger.set_marketing_budget(amount)

    def update_reputation(self, value):
        self.ctx.ledger.update_reputation(value)

    def update_total_users(self, users):
        self.ctx.ledger.update_total_users(users)

    def update_valuation(self, value):
        self.ctx.ledger.update_valuation(value)

    # Products

    def update_product_users(self, product_id, users):
        product = self.ctx.portfolio.find(product_id)
        if product is None:
            return False
        product.set_users(users, self.current_date)
        return True

    def update_product_quality(self, product_id, quality):
        product = self.ctx.portfolio.find(product_id)
        if product is None:
            return False
        product.set_quality(quality)
        return True

    def update_product_market_share(self, product_id, share):
        product = self.ctx.portfolio.find(product_id)
        if product is None:
            return False
        product.set_market_share(share)
        return True

    def start_development(self, type_key, name=None, allocation=None):
        type_key = ProductTypeKey(type_key) if not isinstance(type_key, ProductTypeKey) else type_key
        if name is None:
            name = f"{self.company.name} {product_type(type_key).name}"
        return self.ctx.portfolio.start_development(type_key, name, self.ctx.rng, allocation, self.current_date)

    def update_resource_allocation(self, product_id, allocation):
        return self.ctx.portfolio.update_resource_allocation(product_id, allocation)

    def add_development_progress(self, product_id, points):
        return self.ctx.portfolio.add_development_progress(product_id, points)

    def launch_product(self, product_id):
        product = self.ctx.portfolio.launch_product(product_id, self.current_date)
        if product:
            self.ctx.reason = f"Launched {product.name} (quality {product.quality:.0f}/10)."
            self.ctx.notifications.add(f"{product.name} has launched!", Severity.SUCCESS, self.current_date)
        return product

    def update_product(self, product_id, kind="minor"):
        return self.ctx.portfolio.update_product(product_id, kind, self.current_date)

    def discontinue_product(self, product_id):
        return self.ctx.portfolio.discontinue_product(product_id)

    def acquire_product(self, company_id, product_id):
        """Buy a rival's product; it leaves the rival and joins the player's portfolio"""
        ctx = self.ctx
        rival = ctx.market.find_company(company_id)
        if rival is None:
            return None
        source = next((p for p in rival.products if p.id == product_id), None)
        if source is None:
            return None
        product = ctx.portfolio.acquire_product(source, ctx.ledger, ctx.rng, rival.name, self.current_date)
        if product is None:
            ctx.reason = f"Cannot afford {source.name}."
            return None
        rival.products.remove(source)
        ctx.reason = f"Acquired {source.name} from {rival.name}."
        ctx.notifications.add(ctx.reason, Severity.SUCCESS, self.current_date)
        return product

    # ==================== AI ====================

    def ai_decide_action(self):
        """Autopilot: grow one product line at a time without running out of cash"""
        ctx = self.ctx
        company = self.company
        if company.bankrupt:
            return None
        economy = self.settings.economy
        growth = self.settings.growth

        payroll = max(1, company.employees) * economy.employee_monthly_cost

        # Priority 1: Keep capacity ahead of demand
        demand = max(company.total_users * 1.6, 1_000)
        if resource_capacity(company.employees, company.servers, growth) < demand:
            servers_needed = math.ceil(demand / growth.users_per_server) - company.servers
            if servers_needed > 0 and company.cash > servers_needed * economy.server_purchase_cost + 3 * payroll:
                self.add_servers(servers_needed)
                return "add_servers"
            staff_needed = math.ceil(demand / growth.users_per_employee) - company.employees
            if staff_needed > 0 and company.cash > staff_needed * economy.hire_cost_per_employee + 6 * payroll:
                self.hire_employees(staff_needed)
                return "hire_employees"

        # Priority 2: Ship whatever is in development
        for product in list(ctx.portfolio.in_development):
            if product.development_progress >= 100:
                self.launch_product(product.id)
                return "launch_product"
            self.add_development_progress(product.id, 25)
            return "add_development_progress"

        # Priority 3: Start a new line in the strongest category
        if len(ctx.portfolio.active()) < 5 and company.cash > 12 * payroll:
            owned = {p.type for p in ctx.portfolio.owned}
            candidates = [s for s in types_in_category(ctx.market.strongest_category()) if s.key not in owned]
            if candidates:
                spec = max(candidates, key=lambda s: s.max_market_size)
                self.start_development(spec.key, f"{company.name} {spec.name}",
                                       ResourceAllocation.ideal_for(spec.key))
                return "start_development"

        # Priority 4: Marketing proportional to cash, only with a live product
        budget = company.cash * 0.02 if ctx.portfolio.active() and company.cash > 6 * payroll else 0.0
        current = company.marketing_budget
        # Only reset on a switch to/from zero or a drift above 10%
        if (budget == 0) != (current == 0) or abs(budget - current) > 0.1 * current:
            self.set_marketing_budget(budget)
            return "set_marketing_budget"

        # Priority 5: Refresh the stalest product
        stale = [p for p in ctx.portfolio.active()
                 if (p.months_since_update(self.current_date) or 0) >= growth.staleness_months]
        if stale:
            self.update_product(stale[0].id, "major")
            return "update_product"
        return None


# ==================== Public API ====================

def new_game(seed: Optional[int] = None, settings: Optional[SimulationSettings] = None, saver=None) -> Engine:
    """Create a new game instance

    Args:
        seed: Random seed for reproducibility
        settings: Simulation settings (economy, growth, market, scheduling)
        saver: Object with save(snapshot); defaults from settings.save_path

    Returns:
        Engine instance ready to play
    """
    return Engine(settings=settings, seed=seed, saver=saver)


def step_month(engine: Engine, action: Optional[str] = None, **payload) -> Engine:
    """Advance game by one month with an optional action first

    Args:
        engine: Current engine instance
        action: 'auto' for the autopilot, or any name in OPERATIONS
        **payload: Keyword arguments for the named operation

    Returns:
        Updated engine instance (same object, mutated)
    """
    if action == "auto":
        engine.ai_decide_action()
    elif action:
        engine.dispatch(action, **payload)

    engine.tick_month()
    return engine


def is_finished(engine: Engine) -> bool:
    """A bankrupt company ends the session"""
    return engine.company.bankrupt


def get_results(engine: Engine) -> dict:
    c = engine.company
    return {
        'date': engine.current_date.isoformat(),
        'months': engine.clock.months_passed,
        'bankrupt': c.bankrupt,
        'cash': c.cash,
        'valuation': c.valuation,
        'total_users': c.total_users,
        'employees': c.employees,
        'servers': c.servers,
        'products': len(engine.active_products()),
        'achievements': engine.ctx.achievements.ids(),
        'competitors': len(engine.competitors),
        'reason': engine.reason,
    }


def run_one_simulation(seed: int, months: int = 120, settings: Optional[SimulationSettings] = None) -> dict:
    """Run a single headless simulation on autopilot

    Args:
        seed: Random seed for reproducibility
        months: Number of months to simulate (stops early on bankruptcy)
        settings: Optional simulation settings

    Returns:
        Dictionary with simulation results
    """
    engine = new_game(seed=seed, settings=settings, saver=NullSaver())
    engine.clock.start()

    bankrupt_month = None
    for _ in range(months):
        if is_finished(engine):
            break
        engine.ai_decide_action()
        report = engine.tick_month()
        if report.bankrupt and bankrupt_month is None:
            bankrupt_month = engine.clock.months_passed

    history = engine.company.history
    results = get_results(engine)
    results.update({
        'seed': seed,
        'survived': not engine.company.bankrupt,
        'bankrupt_month': bankrupt_month,
        'final_cash': engine.company.cash,
        'final_valuation': engine.company.valuation,
        'final_users': engine.company.total_users,
        'cash_trough': min((h.cash for h in history), default=engine.company.cash),
        'peak_valuation': max((h.valuation for h in history), default=engine.company.valuation),
        'market_events': len(engine.events()),
        'competitor_acquisitions': len(engine.ctx.market.acquisitions),
    })
    return results


def run_monte_carlo(n: int, months: int = 120, settings: Optional[SimulationSettings] = None) -> Dict[str, Any]:
    """Run Monte Carlo simulation

    Args:
        n: Number of simulations to run (seeds 0..n-1)
        months: Months per run
        settings: Optional simulation settings shared by every run

    Returns:
        Dictionary with aggregate statistics and the per-run results
    """
    settings = settings if settings else SimulationSettings.baseline()
    results = [run_one_simulation(i, months=months, settings=settings) for i in range(n)]

    survivors = [r for r in results if r['survived']]
    survival_rate = len(survivors) / len(results) if results else 0.0

    valuations = [r['final_valuation'] for r in results]
    users = [r['final_users'] for r in results]

    unlocks: Dict[str, int] = {}
    for r in results:
        for achievement_id in r['achievements']:
            unlocks[achievement_id] = unlocks.get(achievement_id, 0) + 1

    return {
        'n': len(results),
        'survival_rate': survival_rate,
        'median_valuation': float(np.median(valuations)) if valuations else 0.0,
        'median_users': float(np.median(users)) if users else 0.0,
        'achievement_rates': {k: v / len(results) for k, v in sorted(unlocks.items())},
        'results': results,
    }
