"""SQLite-backed break-run metadata and per-generation fitness logging."""

from __future__ import annotations

import hashlib
import json
import platform
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Mapping

import numpy as np

from evolution.breaker import BreakSummary, GenerationStats


class BreakLogger:
    """Persist run metadata, per-generation fitness and run summaries in SQLite."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self._ensure_schema()

    def close(self) -> None:
        self.connection.close()

    def _ensure_schema(self) -> None:
        self.connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS break_runs (
                run_id TEXT PRIMARY KEY,
                config_hash TEXT NOT NULL,
                seed INTEGER,
                config_json TEXT NOT NULL,
                runtime_metadata TEXT NOT NULL,
                generations INTEGER,
                elapsed_seconds REAL,
                best_fitness REAL,
                best_key TEXT,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS generation_metrics (
                run_id TEXT NOT NULL,
                generation_index INTEGER NOT NULL,
                best_fitness REAL NOT NULL,
                mean_fitness REAL NOT NULL,
                PRIMARY KEY (run_id, generation_index),
                FOREIGN KEY (run_id)
                    REFERENCES break_runs (run_id)
                    ON DELETE CASCADE
            );
            """
        )
        self.connection.commit()

    def start_run(self, config: Mapping[str, Any], seed: int | None, metadata: Mapping[str, Any] | None = None) -> str:
        """Register a new break run and return its id.

        The id mixes the config digest, the seed and a nanosecond clock so
        repeated runs of one config stay distinct.
        """
        config_json = json.dumps(dict(config), sort_keys=True)
        config_hash = hashlib.sha256(config_json.encode("utf-8")).hexdigest()
        metadata_json = json.dumps(_runtime_metadata(metadata), sort_keys=True)
        run_id = hashlib.sha256(f"{config_hash}:{seed}:{time.time_ns()}".encode("utf-8")).hexdigest()[:16]

        self.connection.execute(
            """
            INSERT OR IGNORE INTO break_runs (
                run_id, config_hash, seed, config_json, runtime_metadata
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (run_id, config_hash, seed, config_json, metadata_json),
        )
        self.connection.commit()
        return run_id

    def log_generation(self, run_id: str, stats: GenerationStats) -> None:
        self.connection.execute(
            """
            INSERT OR REPLACE INTO generation_metrics (
                run_id, generation_index, best_fitness, mean_fitness
            ) VALUES (?, ?, ?, ?)
            """,
            (run_id, int(stats.generation), float(stats.best_fitness), float(stats.mean_fitness)),
        )
        self.connection.commit()

    def observer(self, run_id: str) -> Callable[[GenerationStats], None]:
        """Return a breaker observer that logs every generation under ``run_id``."""
        return lambda stats: self.log_generation(run_id, stats)

    def finish_run(self, run_id: str, summary: BreakSummary) -> None:
        self.connection.execute(
            """
            UPDATE break_runs
            SET generations = ?, elapsed_seconds = ?, best_fitness = ?, best_key = ?
            WHERE run_id = ?
            """,
            (
                summary.generations,
                summary.elapsed_seconds,
                summary.best_fitness,
                summary.best_key,
                run_id,
            ),
        )
        self.connection.commit()

    def fetch_metrics(self, run_id: str) -> list[dict[str, float]]:
        """Return ordered generation metrics for plotting/analysis."""
        rows = self.connection.execute(
            """
            SELECT generation_index, best_fitness, mean_fitness
            FROM generation_metrics
            WHERE run_id = ?
            ORDER BY generation_index ASC
            """,
            (run_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def fetch_run(self, run_id: str) -> dict[str, Any] | None:
        row = self.connection.execute("SELECT * FROM break_runs WHERE run_id = ?", (run_id,)).fetchone()
        return dict(row) if row is not None else None

    def latest_run_id(self) -> str | None:
        """Return most recently created run id, if any."""
        row = self.connection.execute(
            """
            SELECT run_id
            FROM break_runs
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1
            """
        ).fetchone()
        return str(row[0]) if row is not None else None


def _runtime_metadata(extra: Mapping[str, Any] | None) -> dict[str, Any]:
    info: dict[str, Any] = {
        "python": platform.python_version(),
        "numpy": np.__version__,
        "host": platform.platform(),
    }
    info.update(extra or {})
    return info
