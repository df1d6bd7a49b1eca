import sqlite3
from contextlib import contextmanager
from typing import List, Tuple, Optional

from config import YamlConfig, DEFAULT_DB_PATH, DEFAULT_SETTINGS_PATH
from settings_schema import SettingsSchema, validate_settings


class SlotWriteError(Exception):
    """Raised when a storage slot rejects a write."""


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "storage": (
            """CREATE TABLE storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str = DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common == columns:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class SlotRepository(BaseRepository):
    """Named key/value slots holding whole serialized documents."""

    def __init__(
        self, db_path: str = DEFAULT_DB_PATH, capacity: int | None = None
    ) -> None:
        super().__init__(db_path)
        self.capacity = capacity

    def read(self, key: str) -> Optional[str]:
        rows = self.fetch_all("SELECT value FROM storage WHERE key = ?;", (key,))
        return rows[0][0] if rows else None

    def write(self, key: str, value: str) -> None:
        """Overwrite ``key`` with ``value`` or raise ``SlotWriteError``."""
        size = len(value.encode("utf-8"))
        if self.capacity is not None and size > self.capacity:
            raise SlotWriteError(
                f"slot '{key}' quota exceeded: {size} bytes > {self.capacity} bytes"
            )
        try:
            self.execute(
                "INSERT INTO storage (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                (key, value),
            )
        except sqlite3.Error as e:
            raise SlotWriteError(f"slot '{key}' write failed: {e}") from e

    def keys(self) -> List[str]:
        return [k for (k,) in self.fetch_all("SELECT key FROM storage ORDER BY key;")]


class SettingsRepository(BaseRepository):
    """Repository for application settings synchronized with YAML."""

    def __init__(
        self, db_path: str = DEFAULT_DB_PATH, yaml_path: str = DEFAULT_SETTINGS_PATH
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._init_defaults()
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _init_defaults(self) -> None:
        defaults = SettingsSchema().model_dump()
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, str(value)),
                )

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        return {k: v for k, v in rows}

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self.all_settings())

    def get_text(self, key: str, default: str) -> str:
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_text(self, key: str, value: str) -> None:
        validate_settings({**self._raw_all_settings(), key: value})
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def set_int(self, key: str, value: int) -> None:
        self.set_text(key, str(value))

    def all_settings(self) -> dict:
        """Return every known setting with its declared type."""
        raw = self._raw_all_settings()
        known = {k: v for k, v in raw.items() if k in SettingsSchema.model_fields}
        return SettingsSchema(**known).model_dump()
