"""
"Save snapshot now" boundary: a JSON-safe view of the whole simulation and
the savers the engine hands it to once per tick.
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum

logger = logging.getLogger(__name__)


def _plain(value):
    """Recursively turn dataclasses / enums / dates into JSON types"""
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _plain(v) for k, v in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {_key(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _key(k):
    return k.value if isinstance(k, Enum) else str(k)


def to_snapshot(ctx):
    """Everything a collaborator needs to redraw or restore the game"""
    clock = ctx.clock
    market = ctx.market
    return {
        "time": {
            "current_date": _plain(clock.current_date),
            "start_date": _plain(clock.start_date),
            "months_passed": clock.months_passed,
            "years_passed": clock.years_passed,
        },
        "game_control": {
            "speed": clock.speed,
            "started": clock.started,
            "paused": clock.paused,
            "last_saved": _plain(ctx.last_saved),
        },
        "company": _plain(ctx.ledger.company),
        "products": {
            "owned": _plain(ctx.portfolio.owned),
            "in_development": _plain(ctx.portfolio.in_development),
            "acquisitions": _plain(ctx.portfolio.acquisitions),
        },
        "market": {
            "competitors": [
                dict(_plain(c), total_users=c.total_users) for c in market.competitors
            ],
            "market_sizes": _plain(market.market_sizes),
            "trends": _plain(market.trends),
            "events": _plain(market.events),
            "acquisitions": _plain(market.acquisitions),
        },
        "achievements": _plain(ctx.achievements.unlocked),
        "notifications": _plain(list(ctx.notifications)),
    }


class NullSaver:
    """Drops every snapshot (headless runs)"""

    def save(self, snapshot):
        pass


class JsonFileSaver:
    """Writes the snapshot to one JSON file, replacing it atomically"""

    def __init__(self, path):
        self.path = os.path.abspath(path)
        self.saves = 0

    def save(self, snapshot):
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".snapshot-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        self.saves += 1
        logger.debug("Snapshot written to %s", self.path)

    def load(self):
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)
