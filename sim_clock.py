"""
Simulated calendar: one tick is one month.

The clock only knows dates, counters, the speed multiplier and the
started/paused flags. It never schedules anything itself; the driver in
scheduler.py decides when advance() is called.
"""

import calendar
from dataclasses import dataclass
from datetime import date

from sim_config import SCHEDULER_CONFIG, START_DATE


class SimulationError(Exception):
    """Base class for errors raised from the engine's control entry points"""


class InvalidSpeedError(SimulationError, ValueError):
    """Speed multiplier outside the allowed set"""


def add_months(d, months):
    """Shift a date by whole months, clamping the day to the target month's length"""
    index = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(index, 12)
    day = min(d.day, calendar.monthrange(year, month0 + 1)[1])
    return date(year, month0 + 1, day)


def months_between(start, end):
    """Whole calendar months from start to end (negative if end is earlier)"""
    return (end.year - start.year) * 12 + (end.month - start.month)


@dataclass
class Clock:
    """Current simulated date plus game-control flags"""
    current_date: date = START_DATE
    start_date: date = START_DATE
    months_passed: int = 0
    years_passed: int = 0
    speed: int = 1
    started: bool = False
    paused: bool = False

    def advance(self):
        """Move forward exactly one calendar month"""
        previous = self.current_date
        self.current_date = add_months(date(previous.year, previous.month, 1), 1)
        self.months_passed += 1
        if previous.month == 12:
            self.years_passed += 1
        return self.current_date

    def set_date(self, new_date):
        """Jump to a date (testing / scenarios) and recompute the counters"""
        self.current_date = date(new_date.year, new_date.month, 1)
        self.months_passed = months_between(self.start_date, self.current_date)
        self.years_passed = self.months_passed // 12

    def set_speed(self, multiplier, allowed=SCHEDULER_CONFIG.allowed_speeds):
        if multiplier not in allowed:
            raise InvalidSpeedError(f"Speed must be one of {allowed}, got {multiplier!r}")
        self.speed = multiplier

    def interval_ms(self, base_month_ms=SCHEDULER_CONFIG.base_month_ms):
        """Real milliseconds between ticks at the current speed"""
        return base_month_ms // self.speed

    def start(self):
        self.started = True
        self.paused = False

    def stop(self):
        self.started = False

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    @property
    def running(self):
        """Started and not paused: the driver may hold a live timer"""
        return self.started and not self.paused
