"""Plain data records shared between transports, handlers and stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass
class ReplyInfo:
    username: str
    message: str


@dataclass
class BirthdayInfo:
    username: str
    birth_date: date
    nicknames: list[str] = field(default_factory=list)
    # platform tag -> notifications enabled
    notify_on: dict[str, bool] = field(default_factory=dict)
    # platform tag -> last date a greeting was sent there
    last_congratulated: dict[str, date] = field(default_factory=dict)

    def is_today(self, today: date) -> bool:
        return (self.birth_date.month, self.birth_date.day) == (today.month, today.day)
