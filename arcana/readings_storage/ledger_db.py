"""SQLite credit ledger: balances, transactions, login streaks and unlocked achievements.

This is the only place an actual debit happens. The debit is a single
conditional UPDATE, so a concurrent spend from another session can never take
a balance below zero; the losing side gets InsufficientCreditsError.
"""

import os
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from arcana import config
from arcana.credits import CreditAmount
from arcana.errors import InsufficientCreditsError

DB_PATH = config.DB_PATH


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db() -> None:
    """Initialize the ledger tables."""
    os.makedirs(os.path.dirname(os.path.abspath(DB_PATH)), exist_ok=True)

    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                user_id TEXT PRIMARY KEY,
                balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
                login_streak INTEGER NOT NULL DEFAULT 0
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS credit_transactions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                amount INTEGER NOT NULL,
                type TEXT NOT NULL,
                description TEXT,
                reference TEXT,
                created_at TEXT NOT NULL
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS user_achievements (
                user_id TEXT NOT NULL,
                achievement_id TEXT NOT NULL,
                unlocked_at TEXT NOT NULL,
                PRIMARY KEY (user_id, achievement_id)
            )
        """)

        conn.commit()


def _record(conn: sqlite3.Connection, user_id: str, amount: int, type_: str,
            description: Optional[str], reference: Optional[str] = None) -> str:
    tx_id = str(uuid.uuid4())
    conn.execute("""
        INSERT INTO credit_transactions (id, user_id, amount, type, description, reference, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (tx_id, user_id, amount, type_, description, reference, _now()))
    return tx_id


def get_balance(user_id: str) -> CreditAmount:
    with sqlite3.connect(DB_PATH) as conn:
        row = conn.execute("SELECT balance FROM accounts WHERE user_id = ?", (user_id,)).fetchone()
    return CreditAmount.from_trusted(row[0] if row else 0)


def grant_credits(user_id: str, amount: CreditAmount, type_: str = "PURCHASE",
                  description: Optional[str] = None) -> CreditAmount:
    """Add credits to an account, creating it if needed. Returns the new balance."""
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("INSERT OR IGNORE INTO accounts (user_id) VALUES (?)", (user_id,))
        conn.execute("UPDATE accounts SET balance = balance + ? WHERE user_id = ?",
                     (amount.value, user_id))
        _record(conn, user_id, amount.value, type_, description)
        conn.commit()
    return get_balance(user_id)


def debit_credits(user_id: str, amount: CreditAmount, type_: str,
                  description: Optional[str] = None) -> str:
    """Atomically take `amount` from the balance. Returns the transaction id.

    Raises:
        InsufficientCreditsError: if the balance at the moment of the debit is too low
    """
    with sqlite3.connect(DB_PATH) as conn:
        cursor = conn.execute("""
            UPDATE accounts SET balance = balance - ?
            WHERE user_id = ? AND balance >= ?
        """, (amount.value, user_id, amount.value))
        if cursor.rowcount == 0:
            row = conn.execute("SELECT balance FROM accounts WHERE user_id = ?", (user_id,)).fetchone()
            raise InsufficientCreditsError(required=amount.value, available=row[0] if row else 0)
        tx_id = _record(conn, user_id, -amount.value, type_, description)
        conn.commit()
    return tx_id


def refund_credits(user_id: str, amount: CreditAmount, description: str,
                   reference: Optional[str] = None) -> str:
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("UPDATE accounts SET balance = balance + ? WHERE user_id = ?",
                     (amount.value, user_id))
        tx_id = _record(conn, user_id, amount.value, "REFUND", description, reference)
        conn.commit()
    return tx_id


def get_transactions(user_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    with sqlite3.connect(DB_PATH) as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.execute("""
            SELECT id, amount, type, description, reference, created_at FROM credit_transactions
            WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?
        """, (user_id, limit))
        return [dict(row) for row in cursor.fetchall()]


def get_login_streak(user_id: str) -> int:
    with sqlite3.connect(DB_PATH) as conn:
        row = conn.execute("SELECT login_streak FROM accounts WHERE user_id = ?", (user_id,)).fetchone()
    return row[0] if row else 0


def set_login_streak(user_id: str, streak: int) -> None:
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("INSERT OR IGNORE INTO accounts (user_id) VALUES (?)", (user_id,))
        conn.execute("UPDATE accounts SET login_streak = ? WHERE user_id = ?", (streak, user_id))
        conn.commit()


def unlock_achievement(user_id: str, achievement_id: str, reward: int = 0) -> bool:
    """Record an unlock and credit its reward. Returns False if it was already unlocked.

    The unlock row, the balance increment and the ACHIEVEMENT transaction are
    written in one sqlite transaction, so a reward is granted at most once.
    """
    with sqlite3.connect(DB_PATH) as conn:
        cursor = conn.execute("""
            INSERT OR IGNORE INTO user_achievements (user_id, achievement_id, unlocked_at)
            VALUES (?, ?, ?)
        """, (user_id, achievement_id, _now()))
        if cursor.rowcount == 0:
            return False

        if reward > 0:
            conn.execute("INSERT OR IGNORE INTO accounts (user_id) VALUES (?)", (user_id,))
            conn.execute("UPDATE accounts SET balance = balance + ? WHERE user_id = ?", (reward, user_id))
            _record(conn, user_id, reward, "ACHIEVEMENT", f"Achievement unlocked: {achievement_id}",
                    reference=achievement_id)
        conn.commit()
        return True


def get_unlocked_achievements(user_id: str) -> Set[str]:
    with sqlite3.connect(DB_PATH) as conn:
        cursor = conn.execute("SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,))
        return {row[0] for row in cursor.fetchall()}
