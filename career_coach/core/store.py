from __future__ import annotations

import json
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        registered_at TEXT NOT NULL,
        last_login TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS subscriptions (
        user_id TEXT PRIMARY KEY,
        plan TEXT NOT NULL,
        start_date TEXT NOT NULL,
        trial_end_date TEXT,
        usage_json TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS feature_usage (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        feature TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_feature_usage_user
    ON feature_usage (user_id, created_at);
    """,
    """
    CREATE TABLE IF NOT EXISTS chat_memory (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_context (
        user_id TEXT PRIMARY KEY,
        context_json TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        plan TEXT NOT NULL,
        amount REAL NOT NULL,
        payment_method TEXT,
        created_at TEXT NOT NULL
    );
    """,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class CoachStore:
    """SQLite persistence for accounts, subscriptions, usage, chat memory and payments.

    One connection is shared across request threads and guarded by a lock.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = threading.Lock()
        if db_path != ":memory:":
            directory = os.path.dirname(db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        self._conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            self._conn.execute(statement)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def clear(self) -> None:
        with self._lock:
            for table in ("users", "subscriptions", "feature_usage", "chat_memory", "user_context", "payments"):
                self._conn.execute(f"DELETE FROM {table}")

    # Users

    def create_user(self, *, name: str, email: str, password_hash: str) -> dict[str, Any]:
        user_id = str(uuid.uuid4())
        now = _utc_now()
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO users (id, name, email, password_hash, registered_at, last_login)
                    VALUES (?, ?, ?, ?, ?, NULL)
                    """,
                    (user_id, name, email.strip().lower(), password_hash, now.isoformat()),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Email already registered: {email}") from exc
        return {
            "id": user_id,
            "name": name,
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "registered_at": now,
            "last_login": None,
        }

    def _user_from_row(self, row: tuple | None) -> dict[str, Any] | None:
        if not row:
            return None
        return {
            "id": row[0],
            "name": row[1],
            "email": row[2],
            "password_hash": row[3],
            "registered_at": _parse_ts(row[4]),
            "last_login": _parse_ts(row[5]),
        }

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, name, email, password_hash, registered_at, last_login FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        return self._user_from_row(row)

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, name, email, password_hash, registered_at, last_login FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        return self._user_from_row(row)

    def touch_login(self, user_id: str) -> None:
        with self._lock:
            self._conn.execute("UPDATE users SET last_login = ? WHERE id = ?", (_utc_now().isoformat(), user_id))

    def count_users(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM users").fetchone()
        return int(row[0]) if row else 0

    # Subscriptions

    def _select_subscription(self, user_id: str) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT plan, start_date, trial_end_date, usage_json FROM subscriptions WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if not row:
            return None
        return {
            "plan": row[0],
            "start_date": _parse_ts(row[1]),
            "trial_end_date": _parse_ts(row[2]),
            "usage": json.loads(row[3]) if row[3] else {},
        }

    def get_subscription(self, user_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._select_subscription(user_id)

    def ensure_subscription(
        self,
        user_id: str,
        *,
        plan: str,
        start_date: datetime,
        trial_end_date: datetime | None,
        usage: dict[str, int],
    ) -> dict[str, Any]:
        """Create the subscription unless one exists, then return the stored row."""
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO subscriptions (user_id, plan, start_date, trial_end_date, usage_json)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO NOTHING
                """,
                (
                    user_id,
                    plan,
                    start_date.isoformat(),
                    trial_end_date.isoformat() if trial_end_date else None,
                    json.dumps(usage),
                ),
            )
            return self._select_subscription(user_id)

    def increment_usage(self, user_id: str, feature: str) -> dict[str, int] | None:
        """Bump one usage counter in place; ``None`` when the user has no subscription."""
        with self._lock:
            row = self._conn.execute(
                "SELECT usage_json FROM subscriptions WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            if not row:
                return None
            usage = json.loads(row[0]) if row[0] else {}
            usage[feature] = int(usage.get(feature, 0)) + 1
            self._conn.execute(
                "UPDATE subscriptions SET usage_json = ? WHERE user_id = ?",
                (json.dumps(usage), user_id),
            )
        return usage

    def save_subscription(
        self,
        user_id: str,
        *,
        plan: str,
        start_date: datetime,
        trial_end_date: datetime | None,
        usage: dict[str, int],
    ) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO subscriptions (user_id, plan, start_date, trial_end_date, usage_json)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    plan = excluded.plan,
                    start_date = excluded.start_date,
                    trial_end_date = excluded.trial_end_date,
                    usage_json = excluded.usage_json
                """,
                (
                    user_id,
                    plan,
                    start_date.isoformat(),
                    trial_end_date.isoformat() if trial_end_date else None,
                    json.dumps(usage),
                ),
            )

    # Feature usage

    def record_feature_use(self, user_id: str, feature: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO feature_usage (user_id, feature, created_at) VALUES (?, ?, ?)",
                (user_id, feature, _utc_now().isoformat()),
            )

    def user_usage_stats(self, user_id: str) -> dict[str, Any] | None:
        with self._lock:
            rows = self._conn.execute(
                "SELECT feature, COUNT(*), MAX(created_at) FROM feature_usage WHERE user_id = ? GROUP BY feature",
                (user_id,),
            ).fetchall()
        if not rows:
            return None
        last_activity = max(_parse_ts(row[2]) for row in rows)
        return {
            "total_usage": sum(int(row[1]) for row in rows),
            "features_used": sorted(row[0] for row in rows),
            "last_activity": last_activity,
        }

    def feature_stats(self) -> dict[str, dict[str, int]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT feature, COUNT(*), COUNT(DISTINCT user_id) FROM feature_usage GROUP BY feature"
            ).fetchall()
        return {row[0]: {"total_usage": int(row[1]), "unique_users": int(row[2])} for row in rows}

    def active_users(self, *, within: timedelta = timedelta(hours=24)) -> int:
        cutoff = (_utc_now() - within).isoformat()
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(DISTINCT user_id) FROM feature_usage WHERE created_at >= ?",
                (cutoff,),
            ).fetchone()
        return int(row[0]) if row else 0

    # Conversation memory and context

    def append_chat(self, user_id: str, role: str, content: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO chat_memory (user_id, role, content, created_at) VALUES (?, ?, ?, ?)",
                (user_id, role, content, _utc_now().isoformat()),
            )

    def recent_chat(self, user_id: str, limit: int = 3) -> list[dict[str, str]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT role, content FROM chat_memory WHERE user_id = ? ORDER BY id DESC LIMIT ?",
                (user_id, max(0, limit)),
            ).fetchall()
        return [{"role": row[0], "content": row[1]} for row in reversed(rows)]

    def get_context(self, user_id: str) -> dict[str, Any]:
        with self._lock:
            row = self._conn.execute(
                "SELECT context_json FROM user_context WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return json.loads(row[0]) if row and row[0] else {}

    def update_context(self, user_id: str, **values: Any) -> dict[str, Any]:
        context = self.get_context(user_id)
        context.update({key: value for key, value in values.items() if value is not None})
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO user_context (user_id, context_json) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET context_json = excluded.context_json
                """,
                (user_id, json.dumps(context, ensure_ascii=False)),
            )
        return context

    # Payments

    def record_payment(self, user_id: str, *, plan: str, amount: float, payment_method: str | None) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO payments (user_id, plan, amount, payment_method, created_at) VALUES (?, ?, ?, ?, ?)",
                (user_id, plan, float(amount), payment_method, _utc_now().isoformat()),
            )

    def total_revenue(self) -> float:
        with self._lock:
            row = self._conn.execute("SELECT COALESCE(SUM(amount), 0) FROM payments").fetchone()
        return round(float(row[0]), 2) if row else 0.0
