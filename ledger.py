"""
Economy Ledger: the only writer of the player's Company record.

Every mutator clamps to the non-negative invariants instead of raising, and
actions that cost money are refused (return False, nothing changes) when the
company cannot afford them.
"""

import logging
from dataclasses import dataclass

from entities import Company, HistoryPoint, clamp, money
from notifications import Severity
from sim_config import ECONOMY_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class ExpenseBreakdown:
    employees: float = 0.0
    servers: float = 0.0
    marketing: float = 0.0

    @property
    def total(self):
        return self.employees + self.servers + self.marketing


class EconomyLedger:
    """Cash, valuation, headcount, servers and marketing for the player company"""

    def __init__(self, company=None, config=None):
        self.config = config if config else ECONOMY_CONFIG
        self.company = company if company else Company(
            cash=self.config.starting_cash,
            valuation=self.config.starting_cash,
            reputation=self.config.starting_reputation,
        )

    # ==================== Cash ====================

    def update_cash(self, delta, on=None):
        """Apply a cash delta (floored at 0) and append one history snapshot"""
        c = self.company
        c.cash = max(0.0, c.cash + delta)
        c.history.append(HistoryPoint(on, c.cash, c.valuation, c.total_users))
        return c.cash

    def credit_revenue(self, amount, on=None):
        return self.update_cash(max(amount, 0), on=on)

    def monthly_expenses(self):
        c = self.company
        return ExpenseBreakdown(
            employees=c.employees * self.config.employee_monthly_cost,
            servers=c.servers * self.config.server_monthly_cost,
            marketing=c.marketing_budget,
        )

    def charge_expenses(self, total=None):
        """Pay the month's bills; returns the amount actually paid.

        When cash cannot cover the bill, the marketing budget is throttled to
        whatever cash is left (never below 0) and the cash is spent to 0.
        """
        c = self.company
        if total is None:
            total = self.monthly_expenses().total
        total = max(0.0, total)

        if c.cash >= total:
            c.cash -= total
            return total

        paid = c.cash
        if c.cash < c.marketing_budget:
            c.marketing_budget = max(0.0, c.cash)
        c.cash = 0.0
        logger.debug("Expenses %s exceed cash %s; marketing throttled to %s",
                     money(total), money(paid), money(c.marketing_budget))
        return paid

    def charge_tax(self, profit):
        """23% on positive profit, capped at available cash; nothing on a loss"""
        if profit <= 0:
            return 0.0
        c = self.company
        tax = min(c.cash, profit * self.config.tax_rate)
        c.cash -= tax
        return tax

    # ==================== Valuation ====================

    def recompute_valuation(self):
        c = self.company
        valuation = c.total_users * self.config.valuation_per_user + c.cash * self.config.valuation_cash_weight
        c.valuation = max(valuation, c.cash * self.config.valuation_cash_floor)
        return c.valuation

    def update_valuation(self, value):
        self.company.valuation = max(0.0, value)

    # ==================== Bankruptcy ====================

    def check_bankruptcy(self, clock, sink):
        """Cash <= 0 force-pauses the game; the fatal notification is sent once per episode"""
        c = self.company
        if c.cash > 0:
            c.bankrupt = False
            return False

        clock.pause()
        if not c.bankrupt:
            c.bankrupt = True
            sink.add("Your company has gone bankrupt! Game paused.", Severity.ERROR, clock.current_date)
        return True

    # ==================== Management actions ====================

    def set_company_name(self, name):
        self.company.name = name

    def hire_employees(self, count):
        count = max(0, int(count))
        cost = count * self.config.hire_cost_per_employee
        if count == 0 or self.company.cash < cost:
            return False
        self.company.employees += count
        self.company.cash -= cost
        return True

    def fire_employees(self, count):
        self.company.employees = max(0, self.company.employees - max(0, int(count)))

    def add_servers(self, count):
        count = max(0, int(count))
        cost = count * self.config.server_purchase_cost
        if count == 0 or self.company.cash < cost:
            return False
        self.company.servers += count
        self.company.cash -= cost
        return True

    def remove_servers(self, count):
        self.company.servers = max(0, self.company.servers - max(0, int(count)))

    def set_marketing_budget(self, amount):
        self.company.marketing_budget = max(0.0, float(amount))

    def update_total_users(self, users):
        self.company.total_users = max(0, int(users))

    def update_reputation(self, value):
        self.company.reputation = clamp(int(value), 0, 100)

    def spend(self, amount):
        """One-off purchase with a cost gate"""
        if amount < 0 or self.company.cash < amount:
            return False
        self.company.cash -= amount
        return True
