"""
Real-time driver for the engine.

The engine never owns a timer. A Scheduler holds at most one outstanding
timer; the SimulationDriver turns speed/pause changes into an atomic
cancel + reconfigure + schedule under one lock, and the Watchdog restarts
the loop when it should be running but has gone quiet.
"""

import logging
import threading
import time
from typing import Callable, Optional, Protocol

from notifications import Severity

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    active: bool

    def schedule(self, interval_ms: int, fn: Callable[[], None],
                 first_delay_ms: Optional[int] = None) -> None: ...

    def cancel(self) -> None: ...


# ==================== Schedulers ====================

class ThreadingScheduler:
    """One threading.Timer at a time, re-armed only after the callback returns.

    Each schedule() starts a new generation; a timer from an older
    generation that fires late does nothing.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._fn: Optional[Callable[[], None]] = None
        self._interval_ms = 0
        self._generation = 0

    @property
    def active(self):
        return self._fn is not None

    @property
    def interval_ms(self):
        return self._interval_ms

    def schedule(self, interval_ms, fn, first_delay_ms=None):
        with self._lock:
            self._cancel_locked()
            self._fn = fn
            self._interval_ms = interval_ms
            self._arm(self._generation, interval_ms if first_delay_ms is None else first_delay_ms)
        logger.debug("Timer armed every %d ms", interval_ms)

    def cancel(self):
        with self._lock:
            self._cancel_locked()
        logger.debug("Timer cancelled")

    def _cancel_locked(self):
        self._generation += 1
        self._fn = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm(self, generation, delay_ms):
        timer = threading.Timer(delay_ms / 1000, self._fire, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self, generation):
        with self._lock:
            if generation != self._generation or self._fn is None:
                return
            fn = self._fn

        try:
            fn()
        except Exception:
            # Keep the loop alive; the watchdog and the log surface the failure
            logger.exception("Scheduled tick raised")

        with self._lock:
            if generation == self._generation and self._fn is not None:
                self._arm(generation, self._interval_ms)


class ManualScheduler:
    """Records what would be scheduled and fires only when told to"""

    def __init__(self):
        self.fn: Optional[Callable[[], None]] = None
        self.interval_ms: Optional[int] = None
        self.first_delay_ms: Optional[int] = None
        self.schedule_calls = 0
        self.cancel_calls = 0
        self.fired = 0

    @property
    def active(self):
        return self.fn is not None

    def schedule(self, interval_ms, fn, first_delay_ms=None):
        self.fn = fn
        self.interval_ms = interval_ms
        self.first_delay_ms = first_delay_ms
        self.schedule_calls += 1

    def cancel(self):
        self.fn = None
        self.cancel_calls += 1

    def fire(self, times=1):
        """Run the armed callback up to `times` times; stops early if it gets cancelled"""
        for _ in range(times):
            if self.fn is None:
                break
            self.fn()
            self.fired += 1
        return self.fired


# ==================== Driver ====================

class SimulationDriver:
    """Thin adapter between a Scheduler and Engine.tick_month()"""

    def __init__(self, engine, scheduler=None, config=None, time_source=time.monotonic):
        self.engine = engine
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.config = config if config else engine.settings.scheduler
        self.time_source = time_source
        self.lock = threading.RLock()
        self.ticks = 0
        self.armed_at: Optional[float] = None
        self.last_tick_at: Optional[float] = None

    @property
    def clock(self):
        return self.engine.clock

    @property
    def should_be_running(self):
        return self.clock.running

    @property
    def timer_armed(self):
        return self.scheduler.active

    def interval_ms(self):
        return self.clock.interval_ms(self.config.base_month_ms)

    def _arm(self, first=False):
        delay = self.config.first_tick_delay_ms if first else None
        self.armed_at = self.time_source()
        self.scheduler.schedule(self.interval_ms(), self._on_timer, first_delay_ms=delay)

    def _on_timer(self):
        with self.lock:
            # The flags may have flipped between the timer firing and taking the lock
            if not self.clock.running:
                self.scheduler.cancel()
                return
            self.engine.tick_month()
            self.ticks += 1
            self.last_tick_at = self.time_source()
            if not self.clock.running:
                self.scheduler.cancel()

    # ==================== Control ====================

    def start(self):
        with self.lock:
            self.scheduler.cancel()
            self.clock.start()
            self._arm(first=True)
        logger.info("Simulation started at %dx", self.clock.speed)

    def stop(self):
        with self.lock:
            self.scheduler.cancel()
            self.clock.stop()
        logger.info("Simulation stopped")

    def restart(self):
        """Tear down and re-arm the timer without touching the game flags"""
        with self.lock:
            self.scheduler.cancel()
            if self.clock.running:
                self._arm()

    def change_speed(self, multiplier):
        """Returns False when the speed is already active"""
        with self.lock:
            if multiplier == self.clock.speed:
                return False
            self.clock.set_speed(multiplier, self.config.allowed_speeds)
            if self.clock.running:
                self.scheduler.cancel()
                self._arm()
            self.engine.add_notification(f"Game speed changed to {multiplier}x", Severity.INFO)
        logger.info("Speed changed to %dx", multiplier)
        return True

    def toggle_pause(self):
        """Flip pause; returns the new paused state"""
        with self.lock:
            if self.clock.paused:
                self.clock.resume()
                if self.clock.started:
                    self._arm()
                self.engine.add_notification("Game resumed", Severity.INFO)
            else:
                self.clock.pause()
                self.scheduler.cancel()
                self.engine.add_notification("Game paused", Severity.INFO)
            paused = self.clock.paused
        logger.info("Simulation %s", "paused" if paused else "resumed")
        return paused

    def force_tick(self):
        """Debug hook: one tick now, paused or not; returns the new date"""
        with self.lock:
            self.engine.force_tick()
            self.ticks += 1
            self.last_tick_at = self.time_source()
            return self.engine.current_date


# ==================== Watchdog ====================

class Watchdog:
    """If the game is not paused, a tick must happen at least once per interval, eventually"""

    def __init__(self, driver, interval_ms=None, clock=None, scheduler=None):
        self.driver = driver
        self.interval_ms = interval_ms if interval_ms else driver.config.watchdog_interval_ms
        self.clock = clock if clock else driver.time_source
        self.scheduler = scheduler
        self.heals = 0

    def is_stalled(self):
        driver = self.driver
        if not driver.timer_armed:
            return True
        marks = [t for t in (driver.last_tick_at, driver.armed_at) if t is not None]
        if not marks:
            return False
        # Measured from the later of the last tick and the last (re)arm
        return (self.clock() - max(marks)) * 1000 > 2 * driver.interval_ms()

    def check(self):
        """Heal a stalled loop; returns whether it restarted anything"""
        with self.driver.lock:
            if not self.driver.should_be_running or not self.is_stalled():
                return False
            logger.warning("Watchdog: simulation should be running but is not ticking; restarting")
            self.driver.restart()
            self.heals += 1
            return True

    def start(self):
        if self.scheduler is None:
            self.scheduler = ThreadingScheduler()
        self.scheduler.schedule(self.interval_ms, self.check)

    def stop(self):
        if self.scheduler is not None:
            self.scheduler.cancel()


def run_realtime(engine, speed=1, config=None):
    """Start a threaded driver plus watchdog for an engine; returns both"""
    driver = SimulationDriver(engine, ThreadingScheduler(), config)
    if speed != engine.clock.speed:
        engine.clock.set_speed(speed, driver.config.allowed_speeds)
    driver.start()
    watchdog = Watchdog(driver)
    watchdog.start()
    return driver, watchdog
