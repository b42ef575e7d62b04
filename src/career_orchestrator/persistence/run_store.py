"""SQLite-backed run history storage."""

from __future__ import annotations

import hashlib
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from career_orchestrator.models.run import RunState

DEFAULT_DB_PATH = Path.home() / ".career-orchestrator" / "runs.db"


def resume_hash(resume_text: str) -> str:
    return hashlib.sha256(resume_text.encode("utf-8")).hexdigest()


class RunRecord(BaseModel):
    """One row of run history."""

    run_id: str
    user_id: str
    run_type: str
    resume_hash: str
    token_budget_total: int
    created_at: datetime
    status: str | None = None
    token_used_estimate: int | None = None
    completed_at: datetime | None = None
    output_json: str | None = None


class RunStore(Protocol):
    def create_run(
        self,
        user_id: str,
        run_id: str,
        run_type: str,
        resume_hash: str,
        token_budget_total: int,
    ) -> None: ...

    def complete_run(self, run_id: str, output: RunState) -> None: ...

    def fail_run(self, run_id: str, token_used_estimate: int) -> None: ...


class SqliteRunStore:
    """SQLite-backed store for orchestration runs with WAL mode."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS ai_runs (
                    run_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    run_type TEXT NOT NULL,
                    resume_hash TEXT NOT NULL,
                    token_budget_total INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    status TEXT,
                    token_used_estimate INTEGER,
                    completed_at TEXT,
                    output_json TEXT
                )
            """)

    def create_run(
        self,
        user_id: str,
        run_id: str,
        run_type: str,
        resume_hash: str,
        token_budget_total: int,
    ) -> None:
        """Record a run before it executes."""
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO ai_runs
                   (run_id, user_id, run_type, resume_hash, token_budget_total, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (run_id, user_id, run_type, resume_hash, token_budget_total, datetime.now().isoformat()),
            )

    def complete_run(self, run_id: str, output: RunState) -> None:
        """Attach the final output to a previously created run."""
        with self._connect() as conn:
            conn.execute(
                """UPDATE ai_runs
                   SET status = ?, token_used_estimate = ?, completed_at = ?, output_json = ?
                   WHERE run_id = ?""",
                (
                    output.status,
                    output.budget.token_used_estimate,
                    datetime.now().isoformat(),
                    output.to_json(indent=None),
                    run_id,
                ),
            )

    def fail_run(self, run_id: str, token_used_estimate: int) -> None:
        """Close a run that raised before producing output."""
        with self._connect() as conn:
            conn.execute(
                """UPDATE ai_runs
                   SET status = 'failed', token_used_estimate = ?, completed_at = ?
                   WHERE run_id = ?""",
                (token_used_estimate, datetime.now().isoformat(), run_id),
            )

    def get_run(self, run_id: str) -> RunRecord | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM ai_runs WHERE run_id = ?", (run_id,)).fetchone()
        return self._row_to_record(row) if row is not None else None

    def get_history(self, user_id: str | None = None, limit: int = 50) -> list[RunRecord]:
        """Retrieve runs, newest first, optionally filtered by user_id."""
        with self._connect() as conn:
            if user_id is not None:
                rows = conn.execute(
                    "SELECT * FROM ai_runs WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                    (user_id, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM ai_runs ORDER BY created_at DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> RunRecord:
        return RunRecord(
            run_id=row[0],
            user_id=row[1],
            run_type=row[2],
            resume_hash=row[3],
            token_budget_total=row[4],
            created_at=datetime.fromisoformat(row[5]),
            status=row[6],
            token_used_estimate=row[7],
            completed_at=datetime.fromisoformat(row[8]) if row[8] else None,
            output_json=row[9],
        )
