"""Birthday records and once-per-platform-per-day greetings."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Callable

from absolutebot.models import BirthdayInfo
from absolutebot.services.collaborators import Responder
from absolutebot.services.stores import SqliteStore
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

# Leap year, so 29 February can be stored
_STORAGE_YEAR = 2000
_GREETING_LENGTH = 250


def _next_occurrence(birth_date: date, today: date) -> date:
    year = today.year
    while True:
        try:
            candidate = birth_date.replace(year=year)
        except ValueError:
            # 29 February in a non-leap year
            year += 1
            continue
        if candidate >= today:
            return candidate
        year += 1


class BirthdayStore(SqliteStore):
    """Birthdays keyed by username, with nicknames and per-platform flags.

    An optional ``Responder`` composes greetings; without one a fixed
    template is used.
    """

    schema = """
    CREATE TABLE IF NOT EXISTS birthdays (
        username TEXT PRIMARY KEY,
        birth_date TEXT NOT NULL,
        nicknames TEXT NOT NULL,
        notify_on TEXT NOT NULL,
        last_congratulated TEXT NOT NULL
    );
    """

    def __init__(
        self,
        db_path: Path,
        responder: Responder | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(db_path)
        self._responder = responder
        self._today = today
        self._birthdays: list[BirthdayInfo] = []

    async def _load(self) -> None:
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT username, birth_date, nicknames, notify_on, last_congratulated "
            "FROM birthdays ORDER BY username"
        )
        self._birthdays = [
            BirthdayInfo(
                username=row[0],
                birth_date=date.fromisoformat(row[1]),
                nicknames=json.loads(row[2]),
                notify_on=json.loads(row[3]),
                last_congratulated={
                    k: date.fromisoformat(v) for k, v in json.loads(row[4]).items()
                },
            )
            for row in await cursor.fetchall()
        ]

    async def _save(self, info: BirthdayInfo) -> None:
        assert self._db is not None
        await self._db.execute(
            "INSERT INTO birthdays (username, birth_date, nicknames, notify_on, last_congratulated) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(username) DO UPDATE SET birth_date = excluded.birth_date, "
            "nicknames = excluded.nicknames, notify_on = excluded.notify_on, "
            "last_congratulated = excluded.last_congratulated",
            (
                info.username,
                info.birth_date.isoformat(),
                json.dumps(info.nicknames, ensure_ascii=False),
                json.dumps(info.notify_on),
                json.dumps({k: v.isoformat() for k, v in info.last_congratulated.items()}),
            ),
        )
        await self._db.commit()

    def find(self, nickname: str) -> BirthdayInfo | None:
        key = nickname.casefold()
        for info in self._birthdays:
            if any(n.casefold() == key for n in info.nicknames):
                return info
        return None

    def all(self) -> list[BirthdayInfo]:
        return list(self._birthdays)

    async def add_or_update(self, username: str, platform: str, day: int, month: int) -> BirthdayInfo:
        """Raises ValueError for an impossible day/month."""
        birth_date = date(_STORAGE_YEAR, month, day)
        info = self.find(username)
        if info is None:
            info = BirthdayInfo(
                username=username,
                birth_date=birth_date,
                nicknames=[username],
                notify_on={platform: True},
            )
            self._birthdays.append(info)
        else:
            info.birth_date = birth_date
            info.notify_on[platform] = True
        await self._save(info)
        log.info("birthday_saved", username=username, platform=platform)
        return info

    async def disable(self, username: str, platform: str) -> bool:
        info = self.find(username)
        if info is None or platform not in info.notify_on:
            return False
        info.notify_on[platform] = False
        await self._save(info)
        return True

    def days_until(self, username: str, platform: str) -> int | None:
        info = self.find(username)
        if info is None or not info.notify_on.get(platform):
            return None
        today = self._today()
        return (_next_occurrence(info.birth_date, today) - today).days

    def next_birthday(self, platform: str) -> tuple[int, str] | None:
        today = self._today()
        upcoming = [
            ((_next_occurrence(info.birth_date, today) - today).days, info.username)
            for info in self._birthdays
            if info.notify_on.get(platform)
        ]
        return min(upcoming) if upcoming else None

    def today_nicknames(self) -> list[list[str]]:
        today = self._today()
        return [list(info.nicknames) for info in self._birthdays if info.is_today(today)]

    async def congratulate(self, username: str, platform: str) -> str | None:
        """Greeting for ``username`` if one is due on ``platform`` today.

        At most one greeting per platform per year. The date is recorded
        before the greeting is composed, so a failing responder is not
        retried on every message that day.
        """
        info = self.find(username)
        if info is None:
            return None
        today = self._today()
        if not info.notify_on.get(platform) or not info.is_today(today):
            return None
        last = info.last_congratulated.get(platform)
        if last is not None and last.year == today.year:
            return None

        greeted_elsewhere = any(d == today for d in info.last_congratulated.values())
        info.last_congratulated[platform] = today
        await self._save(info)
        log.info("birthday_congratulated", username=info.username, platform=platform)
        return await self._compose(info, greeted_elsewhere)

    async def _compose(self, info: BirthdayInfo, greeted_elsewhere: bool) -> str | None:
        if self._responder is not None:
            if greeted_elsewhere:
                prompt = f"Ты уже не первый раз за сегодня поздравляешь {info.username} с днём рождения."
            else:
                prompt = (
                    f"Составь тёплое, дружелюбное и простое поздравление с днём рождения "
                    f"для {info.username}, без шаблонных фраз."
                )
            return await self._responder.ask(prompt, _GREETING_LENGTH)
        if greeted_elsewhere:
            return f"{info.username}, ещё раз с днём рождения!"
        return f"{info.username}, с днём рождения! 🎉"
