"""Tests for the Economy Ledger"""

from datetime import date

import pytest

from entities import Company
from ledger import EconomyLedger
from notifications import Severity
from sim_config import EconomyConfig


def test_credit_revenue_ignores_negative_amounts(ledger):
    ledger.credit_revenue(-500, on=date(2004, 2, 1))
    assert ledger.company.cash == 1_000_000
    assert len(ledger.company.history) == 1


def test_history_grows_once_per_cash_update(ledger):
    for i in range(5):
        ledger.update_cash(1000, on=date(2004, 2 + i, 1))
    history = ledger.company.history
    assert len(history) == 5
    assert history[-1].cash == 1_005_000
    assert [h.date.month for h in history] == [2, 3, 4, 5, 6]


def test_update_cash_floors_at_zero(ledger):
    ledger.update_cash(-5_000_000)
    assert ledger.company.cash == 0


def test_monthly_expenses(ledger):
    c = ledger.company
    c.employees, c.servers, c.marketing_budget = 3, 50, 2_000
    expenses = ledger.monthly_expenses()
    assert expenses.employees == 75_000
    assert expenses.servers == 500
    assert expenses.total == 77_500


def test_charge_expenses_in_full(ledger):
    assert ledger.charge_expenses(250_000) == 250_000
    assert ledger.company.cash == 750_000


def test_charge_expenses_throttles_marketing_first():
    ledger = EconomyLedger(Company(cash=1000, employees=1, marketing_budget=5000))
    paid = ledger.charge_expenses()
    assert paid == 1000
    assert ledger.company.cash == 0
    assert ledger.company.marketing_budget == 1000
    assert ledger.company.employees == 1


def test_charge_expenses_keeps_budget_when_cash_exceeds_it():
    ledger = EconomyLedger(Company(cash=10_000, employees=1, marketing_budget=5000))
    ledger.charge_expenses()
    assert ledger.company.cash == 0
    assert ledger.company.marketing_budget == 5000


def test_tax_only_on_profit(ledger):
    assert ledger.charge_tax(-1000) == 0
    assert ledger.charge_tax(0) == 0
    assert ledger.charge_tax(100_000) == pytest.approx(23_000)
    assert ledger.company.cash == pytest.approx(977_000)


def test_tax_capped_at_cash():
    ledger = EconomyLedger(Company(cash=100))
    assert ledger.charge_tax(1_000_000) == 100
    assert ledger.company.cash == 0


def test_recompute_valuation(ledger):
    ledger.company.total_users = 1000
    assert ledger.recompute_valuation() == 550_000


def test_valuation_floor():
    config = EconomyConfig(valuation_cash_weight=0.0)
    ledger = EconomyLedger(Company(cash=2_000_000), config)
    assert ledger.recompute_valuation() == pytest.approx(200_000)


def test_bankruptcy_pauses_and_notifies_once(clock, sink):
    ledger = EconomyLedger(Company(cash=1000, employees=1))
    clock.start()
    ledger.charge_expenses()
    assert ledger.company.cash == 0

    assert ledger.check_bankruptcy(clock, sink)
    assert clock.paused
    errors = sink.by_severity(Severity.ERROR)
    assert len(errors) == 1
    assert "bankrupt" in errors[0].message

    assert ledger.check_bankruptcy(clock, sink)
    assert len(sink.by_severity(Severity.ERROR)) == 1


def test_solvent_company_is_not_bankrupt(ledger, clock, sink):
    clock.start()
    assert not ledger.check_bankruptcy(clock, sink)
    assert clock.running
    assert len(sink) == 0


def test_hire_employees_cost_gate(ledger):
    assert ledger.hire_employees(10)
    assert ledger.company.employees == 10
    assert ledger.company.cash == 830_000

    assert not ledger.hire_employees(100)
    assert ledger.company.employees == 10
    assert ledger.company.cash == 830_000


def test_fire_and_remove_floor_at_zero(ledger):
    ledger.company.employees = 2
    ledger.fire_employees(5)
    ledger.remove_servers(3)
    assert ledger.company.employees == 0
    assert ledger.company.servers == 0


def test_add_servers_cost_gate():
    ledger = EconomyLedger(Company(cash=95))
    assert not ledger.add_servers(10)
    assert ledger.add_servers(9)
    assert ledger.company.servers == 9
    assert ledger.company.cash == 5


def test_clamping_setters(ledger):
    ledger.set_marketing_budget(-10)
    ledger.update_reputation(150)
    ledger.update_total_users(-3)
    ledger.update_valuation(-1)
    c = ledger.company
    assert c.marketing_budget == 0
    assert c.reputation == 100
    assert c.total_users == 0
    assert c.valuation == 0


def test_spend(ledger):
    assert not ledger.spend(2_000_000)
    assert ledger.spend(400_000)
    assert ledger.company.cash == 600_000
