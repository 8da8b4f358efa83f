"""
Database Service (DAL - Data Access Layer)
==========================================

Centralized database access for quests, wallets and notifications.
Every sqlite3 failure surfaces as StoreUnavailableError; retrying is the
caller's business.
"""

import sqlite3
import logging
import threading
from typing import Optional, List, Dict, Any, Tuple
from contextlib import contextmanager
from datetime import datetime, timezone

from exceptions import StoreUnavailableError

logger = logging.getLogger("DB_SERVICE")

# Fixed width so that lexical order of stored values equals time order.
# Values are naive UTC; local time would break the ordering at DST fall-back.
DB_TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

REJECT_POOL_FULL = "pool_full"
REJECT_DUPLICATE = "duplicate_active"


def utc_now() -> datetime:
    """Current time as naive UTC, the base of every stored timestamp"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_db_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(DB_TIME_FORMAT)


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.strptime(value, DB_TIME_FORMAT)


class DatabaseConnectionPool:
    """Thread-local SQLite connections sharing one database file"""

    def __init__(self, db_path: str = "quests.db", timeout: int = 30):
        self.db_path = db_path
        self.timeout = timeout
        self._connections: Dict[int, sqlite3.Connection] = {}
        self._lock = threading.Lock()

    def get_connection(self) -> sqlite3.Connection:
        """Get thread-local connection"""
        thread_id = threading.get_ident()

        with self._lock:
            conn = self._connections.get(thread_id)
            if conn is None:
                try:
                    conn = sqlite3.connect(self.db_path, timeout=self.timeout, check_same_thread=False)
                except sqlite3.Error as e:
                    raise StoreUnavailableError(f"Cannot open database {self.db_path}: {e}") from e
                conn.row_factory = sqlite3.Row
                self._connections[thread_id] = conn

        return conn

    def close_all(self):
        """Close all connections"""
        with self._lock:
            for conn in self._connections.values():
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.debug(f"Ignoring error while closing connection: {e}")
            self._connections.clear()


class BaseRepository:
    """
    Base repository for all data models (SRP)

    Implements common CRUD operations to avoid duplication.
    """

    def __init__(self, table_name: str, pool: DatabaseConnectionPool, id_column: str = "id"):
        self.table_name = table_name
        self.pool = pool
        self.id_column = id_column

    @contextmanager
    def _get_cursor(self):
        """Cursor inside a transaction; commits on success, rolls back on error"""
        conn = self.pool.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error in {self.table_name}: {e}")
            raise StoreUnavailableError(
                f"Quest store failure on {self.table_name}",
                context={"table": self.table_name, "cause": str(e)},
            ) from e
        except Exception:
            conn.rollback()
            raise

    def get_by_id(self, id: Any) -> Optional[Dict[str, Any]]:
        """Get record by ID"""
        with self._get_cursor() as cursor:
            cursor.execute(
                f"SELECT * FROM {self.table_name} WHERE {self.id_column} = ?",
                (id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def create(self, **kwargs) -> Dict[str, Any]:
        """Create new record"""
        columns = ", ".join(kwargs.keys())
        placeholders = ", ".join(["?"] * len(kwargs))

        with self._get_cursor() as cursor:
            cursor.execute(
                f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})",
                tuple(kwargs.values())
            )
            record_id = cursor.lastrowid if self.id_column == "id" else kwargs[self.id_column]

        return self.get_by_id(record_id)

    def find(self, order_by: Optional[str] = None, **where_clause) -> List[Dict[str, Any]]:
        """Find records by criteria"""
        where_parts = [f"{k} = ?" for k in where_clause.keys()]
        query = f"SELECT * FROM {self.table_name}"
        if where_parts:
            query += " WHERE " + " AND ".join(where_parts)
        if order_by:
            query += f" ORDER BY {order_by}"

        with self._get_cursor() as cursor:
            cursor.execute(query, tuple(where_clause.values()))
            rows = cursor.fetchall()
            return [dict(row) for row in rows]


# =============================================================================
# SCHEMA
# =============================================================================

SCHEMA_STATEMENTS: Tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS quests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        template_id TEXT,
        quest_type TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT DEFAULT '',
        reward_type TEXT NOT NULL,
        reward_spec TEXT NOT NULL,
        progress_current INTEGER NOT NULL DEFAULT 0,
        progress_target INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        icon TEXT,
        created_at TEXT NOT NULL,
        expires_at TEXT,
        completed_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_quests_user_status ON quests(user_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_quests_user_type_completed ON quests(user_id, quest_type, completed_at)",
    """
    CREATE TABLE IF NOT EXISTS wallets (
        user_id TEXT PRIMARY KEY,
        balance REAL NOT NULL DEFAULT 0,
        coins INTEGER NOT NULL DEFAULT 0,
        energy INTEGER NOT NULL DEFAULT 0,
        energy_cycles INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        is_read INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id)",
)


def init_database(pool: DatabaseConnectionPool) -> None:
    """Create tables and indexes if they are missing"""
    conn = pool.get_connection()
    try:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)
        conn.commit()
    except sqlite3.Error as e:
        logger.error(f"❌ Error initializing quest database: {e}")
        raise StoreUnavailableError(f"Cannot initialize schema: {e}") from e
    logger.info(f"✅ Quest database initialized ({pool.db_path})")


# =============================================================================
# REPOSITORIES
# =============================================================================

class QuestRepository(BaseRepository):
    """Persisted quest instances, one row per instance"""

    def __init__(self, pool: DatabaseConnectionPool):
        super().__init__("quests", pool)

    def expire_overdue(self, user_id: str, now: datetime) -> int:
        """Bulk-expire active quests of one user whose deadline has passed"""
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE quests SET status = 'expired'
                WHERE user_id = ? AND status = 'active'
                AND expires_at IS NOT NULL AND expires_at < ?
                """,
                (user_id, to_db_time(now)),
            )
            return cursor.rowcount

    def expire_all_overdue(self, now: datetime) -> int:
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE quests SET status = 'expired'
                WHERE status = 'active' AND expires_at IS NOT NULL AND expires_at < ?
                """,
                (to_db_time(now),),
            )
            return cursor.rowcount

    def count_active(self, user_id: str) -> int:
        with self._get_cursor() as cursor:
            cursor.execute(
                "SELECT COUNT(*) FROM quests WHERE user_id = ? AND status = 'active'",
                (user_id,),
            )
            return cursor.fetchone()[0]

    def list_active(self, user_id: str) -> List[Dict[str, Any]]:
        """Active quests, newest first"""
        return self.find(order_by="created_at DESC, id DESC", user_id=user_id, status="active")

    def create_if_room(self, max_active: int, **fields) -> Tuple[Optional[Dict[str, Any]], Optional[str], int]:
        """
        Insert an active quest only if the user's pool has a free slot and
        no active quest of the same type.

        Count, duplicate check and insert share one BEGIN IMMEDIATE
        transaction, so the bound holds for every connection on the file,
        not just this process.

        Returns:
            (row, None, active_count) on success,
            (None, REJECT_POOL_FULL | REJECT_DUPLICATE, active_count) otherwise
        """
        columns = ", ".join(fields.keys())
        placeholders = ", ".join(["?"] * len(fields))

        with self._get_cursor() as cursor:
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute(
                "SELECT COUNT(*) FROM quests WHERE user_id = ? AND status = 'active'",
                (fields["user_id"],),
            )
            active = cursor.fetchone()[0]
            if active >= max_active:
                return None, REJECT_POOL_FULL, active

            cursor.execute(
                """
                SELECT 1 FROM quests
                WHERE user_id = ? AND quest_type = ? AND status = 'active'
                LIMIT 1
                """,
                (fields["user_id"], fields["quest_type"]),
            )
            if cursor.fetchone() is not None:
                return None, REJECT_DUPLICATE, active

            cursor.execute(
                f"INSERT INTO quests ({columns}) VALUES ({placeholders})",
                tuple(fields.values()),
            )
            quest_id = cursor.lastrowid

        return self.get_by_id(quest_id), None, active + 1

    def get_owned(self, quest_id: int, user_id: str) -> Optional[Dict[str, Any]]:
        row = self.get_by_id(quest_id)
        if row is None or row["user_id"] != user_id:
            return None
        return row

    def set_progress(self, quest_id: int, user_id: str, progress: int) -> bool:
        """Write progress only while the quest is still active"""
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE quests SET progress_current = ?
                WHERE id = ? AND user_id = ? AND status = 'active'
                """,
                (progress, quest_id, user_id),
            )
            return cursor.rowcount == 1

    def mark_completed(self, quest_id: int, user_id: str, completed_at: datetime) -> bool:
        """
        Compare-and-set transition active -> completed.

        Returns True only for the single caller whose update matched an
        active row; reward settlement is gated on that.
        """
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE quests
                SET status = 'completed', progress_current = progress_target, completed_at = ?
                WHERE id = ? AND user_id = ? AND status = 'active'
                """,
                (to_db_time(completed_at), quest_id, user_id),
            )
            return cursor.rowcount == 1

    def delete_owned(self, quest_id: int, user_id: str) -> bool:
        with self._get_cursor() as cursor:
            cursor.execute("DELETE FROM quests WHERE id = ? AND user_id = ?", (quest_id, user_id))
            return cursor.rowcount > 0

    def has_active_type(self, user_id: str, quest_type: str) -> bool:
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                SELECT 1 FROM quests
                WHERE user_id = ? AND quest_type = ? AND status = 'active'
                LIMIT 1
                """,
                (user_id, quest_type),
            )
            return cursor.fetchone() is not None

    def count_completed_since(self, user_id: str, quest_type: str, since: datetime) -> int:
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                SELECT COUNT(*) FROM quests
                WHERE user_id = ? AND quest_type = ?
                AND completed_at IS NOT NULL AND completed_at >= ?
                """,
                (user_id, quest_type, to_db_time(since)),
            )
            return cursor.fetchone()[0]

    def users_over_limit(self, limit: int) -> List[str]:
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                SELECT user_id FROM quests WHERE status = 'active'
                GROUP BY user_id HAVING COUNT(*) > ?
                """,
                (limit,),
            )
            return [row[0] for row in cursor.fetchall()]

    def delete_excess_active(self, user_id: str, limit: int) -> int:
        """Keep the newest `limit` active quests of a user, delete the rest"""
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                DELETE FROM quests WHERE id IN (
                    SELECT id FROM quests
                    WHERE user_id = ? AND status = 'active'
                    ORDER BY created_at DESC, id DESC
                    LIMIT -1 OFFSET ?
                )
                """,
                (user_id, limit),
            )
            return cursor.rowcount


class WalletRepository(BaseRepository):
    """User balances touched by reward settlement"""

    def __init__(self, pool: DatabaseConnectionPool):
        super().__init__("wallets", pool, id_column="user_id")

    def ensure(self, user_id: str) -> None:
        with self._get_cursor() as cursor:
            cursor.execute("INSERT OR IGNORE INTO wallets (user_id) VALUES (?)", (user_id,))

    def add_balance(self, user_id: str, delta: float) -> None:
        with self._get_cursor() as cursor:
            cursor.execute(
                "UPDATE wallets SET balance = ROUND(balance + ?, 2) WHERE user_id = ?",
                (delta, user_id),
            )

    def add_coins(self, user_id: str, delta: int) -> None:
        with self._get_cursor() as cursor:
            cursor.execute(
                "UPDATE wallets SET coins = coins + ? WHERE user_id = ?",
                (delta, user_id),
            )

    def add_energy(self, user_id: str, delta: int, cycle_size: int) -> None:
        """Single statement so cycle rollover is atomic"""
        with self._get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE wallets
                SET energy_cycles = energy_cycles + (energy + ?) / ?,
                    energy = (energy + ?) % ?
                WHERE user_id = ?
                """,
                (delta, cycle_size, delta, cycle_size, user_id),
            )


class NotificationRepository(BaseRepository):
    def __init__(self, pool: DatabaseConnectionPool):
        super().__init__("notifications", pool)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.find(order_by="id DESC", user_id=user_id)


# Global pool instance
_pool: Optional[DatabaseConnectionPool] = None


def init_pool(db_path: str = "quests.db", timeout: int = 30) -> DatabaseConnectionPool:
    """Initialize global connection pool and make sure the schema exists"""
    global _pool
    if _pool is not None:
        _pool.close_all()
    _pool = DatabaseConnectionPool(db_path, timeout)
    init_database(_pool)
    return _pool


def get_pool() -> DatabaseConnectionPool:
    """Get global connection pool"""
    global _pool
    if _pool is None:
        from config import DATABASE_PATH, DATABASE_TIMEOUT
        init_pool(DATABASE_PATH, DATABASE_TIMEOUT)
    return _pool


def close_pool():
    """Close global connection pool"""
    global _pool
    if _pool:
        _pool.close_all()
        _pool = None
