"""SQLite-backed stores for roles, runtime config, command state and censor words."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from absolutebot.core.auth import UserRole
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)


def normalize_command(name: str) -> str:
    name = name.strip().lower()
    return name if name.startswith("!") else "!" + name


class SqliteStore:
    """Owns one aiosqlite connection and creates its schema on start."""

    schema = ""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.executescript(self.schema)
        await self._db.commit()
        await self._load()

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _load(self) -> None:
        """Hook for stores that keep an in-memory copy."""


class SqliteRoleStore(SqliteStore):
    schema = """
    CREATE TABLE IF NOT EXISTS user_roles (
        username TEXT PRIMARY KEY,
        role TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """

    # Roles that chat commands are not allowed to overwrite
    _PROTECTED = (UserRole.ADMINISTRATOR, UserRole.BOT)

    async def get_role(self, username: str) -> UserRole:
        assert self._db is not None
        key = username.lower()
        cursor = await self._db.execute(
            "SELECT role FROM user_roles WHERE username = ?", (key,)
        )
        row = await cursor.fetchone()
        if row is not None:
            try:
                return UserRole(row[0])
            except ValueError:
                log.warning("unknown_role_value", username=key, role=row[0])
                return UserRole.DEFAULT

        await self._write(key, UserRole.DEFAULT)
        return UserRole.DEFAULT

    async def set_role(self, username: str, role: UserRole) -> bool:
        assert self._db is not None
        key = username.lower()
        cursor = await self._db.execute(
            "SELECT role FROM user_roles WHERE username = ?", (key,)
        )
        row = await cursor.fetchone()
        if row is not None and row[0] in {r.value for r in self._PROTECTED}:
            log.warning("protected_role_change_refused", username=key, role=role.value)
            return False
        await self._write(key, role)
        log.info("role_set", username=key, role=role.value)
        return True

    async def _write(self, username: str, role: UserRole) -> None:
        assert self._db is not None
        now = datetime.now(timezone.utc).isoformat()
        await self._db.execute(
            "INSERT INTO user_roles (username, role, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(username) DO UPDATE SET role = excluded.role, "
            "updated_at = excluded.updated_at",
            (username, role.value, now),
        )
        await self._db.commit()


class SqliteConfigStore(SqliteStore):
    """Runtime-mutable string settings (cooldowns, sticker ids, channel ids)."""

    schema = """
    CREATE TABLE IF NOT EXISTS config (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """

    async def get(self, key: str, default: str | None = None) -> str | None:
        assert self._db is not None
        cursor = await self._db.execute("SELECT value FROM config WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row[0] if row else default

    async def set(self, key: str, value: str) -> None:
        assert self._db is not None
        await self._db.execute(
            "INSERT INTO config (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        await self._db.commit()

    async def all(self) -> dict[str, str]:
        assert self._db is not None
        cursor = await self._db.execute("SELECT key, value FROM config ORDER BY key")
        return {row[0]: row[1] for row in await cursor.fetchall()}


class CommandStatusStore(SqliteStore):
    """Per (command, platform) on/off switch. Unknown pairs are enabled."""

    schema = """
    CREATE TABLE IF NOT EXISTS command_status (
        command TEXT NOT NULL,
        platform TEXT NOT NULL,
        enabled INTEGER NOT NULL,
        PRIMARY KEY (command, platform)
    );
    """

    async def is_enabled(self, command: str, platform: str) -> bool:
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT enabled FROM command_status WHERE command = ? AND platform = ?",
            (normalize_command(command), platform),
        )
        row = await cursor.fetchone()
        return True if row is None else bool(row[0])

    async def set_enabled(self, command: str, platform: str, enabled: bool) -> None:
        assert self._db is not None
        await self._db.execute(
            "INSERT INTO command_status (command, platform, enabled) VALUES (?, ?, ?) "
            "ON CONFLICT(command, platform) DO UPDATE SET enabled = excluded.enabled",
            (normalize_command(command), platform, int(enabled)),
        )
        await self._db.commit()
        log.info("command_status_set", command=command, platform=platform, enabled=enabled)

    async def all(self) -> dict[str, dict[str, bool]]:
        """command -> platform -> enabled, for every stored switch."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT command, platform, enabled FROM command_status ORDER BY command, platform"
        )
        statuses: dict[str, dict[str, bool]] = {}
        for command, platform, enabled in await cursor.fetchall():
            statuses.setdefault(command, {})[platform] = bool(enabled)
        return statuses


class ExtraCommandsStore(SqliteStore):
    """Text commands added from chat by moderators."""

    schema = """
    CREATE TABLE IF NOT EXISTS extra_commands (
        name TEXT PRIMARY KEY,
        response TEXT NOT NULL
    );
    """

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self._commands: dict[str, str] = {}

    async def _load(self) -> None:
        assert self._db is not None
        cursor = await self._db.execute("SELECT name, response FROM extra_commands")
        self._commands = {row[0]: row[1] for row in await cursor.fetchall()}

    def get(self, name: str) -> str | None:
        return self._commands.get(name.lower())

    def names(self) -> list[str]:
        return sorted(self._commands)

    async def add_or_update(self, name: str, response: str) -> str:
        assert self._db is not None
        key = normalize_command(name)
        await self._db.execute(
            "INSERT INTO extra_commands (name, response) VALUES (?, ?) "
            "ON CONFLICT(name) DO UPDATE SET response = excluded.response",
            (key, response),
        )
        await self._db.commit()
        self._commands[key] = response
        return key

    async def remove(self, name: str) -> bool:
        assert self._db is not None
        key = normalize_command(name)
        if key not in self._commands:
            return False
        await self._db.execute("DELETE FROM extra_commands WHERE name = ?", (key,))
        await self._db.commit()
        del self._commands[key]
        return True


class CensorWordStore(SqliteStore):
    schema = """
    CREATE TABLE IF NOT EXISTS censor_words (
        word TEXT PRIMARY KEY
    );
    """

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self._words: list[str] = []

    async def _load(self) -> None:
        assert self._db is not None
        cursor = await self._db.execute("SELECT word FROM censor_words ORDER BY word")
        self._words = [row[0] for row in await cursor.fetchall()]

    def words(self) -> list[str]:
        return list(self._words)

    async def add(self, word: str) -> bool:
        assert self._db is not None
        word = word.strip().lower()
        if not word or word in self._words:
            return False
        await self._db.execute("INSERT INTO censor_words (word) VALUES (?)", (word,))
        await self._db.commit()
        self._words.append(word)
        log.info("censor_word_added", word=word)
        return True

    async def remove(self, word: str) -> bool:
        assert self._db is not None
        word = word.strip().lower()
        if word not in self._words:
            return False
        await self._db.execute("DELETE FROM censor_words WHERE word = ?", (word,))
        await self._db.commit()
        self._words.remove(word)
        log.info("censor_word_removed", word=word)
        return True
