"""SQLite storage for readings and their follow-up questions."""

import json
import os
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from arcana import config
from arcana.models import FollowUpQuestion, HistoryEntry
from arcana.reading import Reading

DB_PATH = config.DB_PATH


def init_db() -> None:
    """Initialize the readings database with required tables."""
    os.makedirs(os.path.dirname(os.path.abspath(DB_PATH)), exist_ok=True)

    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS readings (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                spread_code TEXT NOT NULL,
                interpretation_style_code TEXT NOT NULL,
                question TEXT,
                cards_json TEXT NOT NULL,
                interpretation TEXT NOT NULL,
                summary TEXT,
                user_reflection TEXT,
                themes_json TEXT NOT NULL DEFAULT '[]',
                credit_cost INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_readings_user ON readings(user_id)")

        conn.execute("""
            CREATE TABLE IF NOT EXISTS follow_ups (
                id TEXT PRIMARY KEY,
                reading_id TEXT NOT NULL,
                question TEXT NOT NULL,
                answer TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (reading_id) REFERENCES readings (id) ON DELETE CASCADE
            )
        """)

        conn.commit()


def save_reading(reading: Reading) -> Reading:
    """Insert a new reading and return it with its assigned id."""
    if reading.id:
        raise ValueError(f"Reading {reading.id} is already persisted. Use update_reading.")

    row = reading.to_persistence()
    row["id"] = str(uuid.uuid4())

    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            INSERT INTO readings (id, user_id, spread_code, interpretation_style_code, question,
                                  cards_json, interpretation, summary, user_reflection,
                                  themes_json, credit_cost, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            row["id"], row["user_id"], row["spread_type"], row["interpretation_style"],
            row["question"], json.dumps(row["cards"]), row["interpretation"], row["summary"],
            row["user_reflection"], json.dumps(row["themes"]), row["credit_cost"],
            row["created_at"].isoformat(),
        ))
        conn.commit()

    row["follow_ups"] = reading.follow_ups
    return Reading.from_persistence(row)


def update_reading(reading: Reading) -> None:
    """Write back the mutable annotations: summary, reflection and themes."""
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            UPDATE readings SET summary = ?, user_reflection = ?, themes_json = ?
            WHERE id = ?
        """, (reading.summary, reading.user_reflection, json.dumps(reading.themes), reading.id))
        conn.commit()


def add_follow_up(reading_id: str, follow_up: FollowUpQuestion) -> None:
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            INSERT INTO follow_ups (id, reading_id, question, answer, created_at)
            VALUES (?, ?, ?, ?, ?)
        """, (follow_up.id, reading_id, follow_up.question, follow_up.answer,
              follow_up.created_at.isoformat()))
        conn.commit()


def _row_to_props(row: sqlite3.Row, follow_ups: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "user_id": row["user_id"],
        "spread_type": row["spread_code"],
        "interpretation_style": row["interpretation_style_code"],
        "question": row["question"],
        "cards": json.loads(row["cards_json"]),
        "interpretation": row["interpretation"],
        "summary": row["summary"],
        "user_reflection": row["user_reflection"],
        "themes": json.loads(row["themes_json"] or "[]"),
        "credit_cost": row["credit_cost"],
        "created_at": datetime.fromisoformat(row["created_at"]),
        "follow_ups": follow_ups,
    }


def get_reading(reading_id: str) -> Optional[Reading]:
    """Retrieve a reading by ID."""
    with sqlite3.connect(DB_PATH) as conn:
        conn.row_factory = sqlite3.Row
        row = conn.execute("SELECT * FROM readings WHERE id = ?", (reading_id,)).fetchone()
        if not row:
            return None

        cursor = conn.execute("""
            SELECT id, question, answer, created_at FROM follow_ups
            WHERE reading_id = ? ORDER BY created_at ASC
        """, (reading_id,))
        follow_ups = []
        for f in cursor.fetchall():
            item = dict(f)
            item["created_at"] = datetime.fromisoformat(item["created_at"])
            follow_ups.append(item)

        return Reading.from_persistence(_row_to_props(row, follow_ups))


def list_history(user_id: str, limit: int = 1000) -> List[HistoryEntry]:
    """Spread and date of each of a user's readings, newest first."""
    with sqlite3.connect(DB_PATH) as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.execute("""
            SELECT id, spread_code, created_at FROM readings
            WHERE user_id = ? ORDER BY created_at DESC LIMIT ?
        """, (user_id, limit))
        return [
            HistoryEntry(
                reading_id=row["id"],
                spread_type=row["spread_code"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in cursor.fetchall()
        ]


def count_readings(user_id: str) -> int:
    with sqlite3.connect(DB_PATH) as conn:
        return conn.execute("SELECT COUNT(*) FROM readings WHERE user_id = ?", (user_id,)).fetchone()[0]
