"""
Append-only notification log that the other components write into
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass
class Notification:
    id: int
    message: str
    severity: Severity
    date: Optional[date]
    read: bool = False


class NotificationSink:
    """Ordered log; ids are sequential and entries are never removed"""

    def __init__(self):
        self._entries: List[Notification] = []

    def add(self, message, severity=Severity.INFO, on=None):
        note = Notification(id=len(self._entries) + 1, message=message, severity=severity, date=on)
        self._entries.append(note)
        logger.log(_LOG_LEVELS[severity], "%s", message)
        return note

    def mark_read(self, note_id):
        for note in self._entries:
            if note.id == note_id:
                note.read = True
                return True
        return False

    def unread(self):
        return [n for n in self._entries if not n.read]

    def by_severity(self, severity):
        return [n for n in self._entries if n.severity == severity]

    def latest(self):
        return self._entries[-1] if self._entries else None

    def __iter__(self):
        return iter(list(self._entries))

    def __len__(self):
        return len(self._entries)
