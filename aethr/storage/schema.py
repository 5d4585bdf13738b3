"""
Aethr — Database Schema
SQLite table definitions, initialization, and row serialization helpers.
History and Knowledge Base schemas are independent: each store can live
in its own file or share one.
"""
import sqlite3
from typing import Optional
from pathlib import Path
from ..core.types import HistoryEntry, BrainEntry
from ..core.errors import StorageUnavailableError
# ─── Schema SQL ──────────────────────────────────────────────────────────────
HISTORY_SCHEMA_SQL = """
-- Append-only log of executed commands
CREATE TABLE IF NOT EXISTS command_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    command TEXT NOT NULL,
    working_dir TEXT NOT NULL DEFAULT '',
    exit_code INTEGER,
    timestamp INTEGER NOT NULL,
    command_normalized TEXT NOT NULL,
    UNIQUE(command, working_dir, timestamp)
);
CREATE INDEX IF NOT EXISTS idx_history_timestamp
    ON command_history(timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_history_normalized
    ON command_history(command_normalized);
-- Full-text index over command text (external content, trigger-synced)
CREATE VIRTUAL TABLE IF NOT EXISTS command_fts USING fts5(
    command,
    content='command_history',
    content_rowid='id',
    tokenize='porter unicode61'
);
CREATE TRIGGER IF NOT EXISTS command_history_ai AFTER INSERT ON command_history BEGIN
    INSERT INTO command_fts(rowid, command) VALUES (new.id, new.command);
END;
CREATE TRIGGER IF NOT EXISTS command_history_ad AFTER DELETE ON command_history BEGIN
    INSERT INTO command_fts(command_fts, rowid, command)
    VALUES ('delete', old.id, old.command);
END;
"""
BRAIN_SCHEMA_SQL = """
-- Community fixes: one row per (command, error_pattern)
CREATE TABLE IF NOT EXISTS community_brain (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    command TEXT NOT NULL,
    error_pattern TEXT NOT NULL DEFAULT '',
    context_tags TEXT,
    success_count INTEGER NOT NULL DEFAULT 0,
    fail_count INTEGER NOT NULL DEFAULT 0,
    provenance TEXT,
    created_at INTEGER NOT NULL,
    UNIQUE(command, error_pattern)
);
CREATE INDEX IF NOT EXISTS idx_brain_success
    ON community_brain(success_count DESC, created_at DESC);
CREATE VIRTUAL TABLE IF NOT EXISTS community_brain_fts USING fts5(
    command,
    error_pattern,
    context_tags,
    content='community_brain',
    content_rowid='id',
    tokenize='porter unicode61'
);
CREATE TRIGGER IF NOT EXISTS community_brain_ai AFTER INSERT ON community_brain BEGIN
    INSERT INTO community_brain_fts(rowid, command, error_pattern, context_tags)
    VALUES (new.id, new.command, new.error_pattern, new.context_tags);
END;
CREATE TRIGGER IF NOT EXISTS community_brain_ad AFTER DELETE ON community_brain BEGIN
    INSERT INTO community_brain_fts(community_brain_fts, rowid, command, error_pattern, context_tags)
    VALUES ('delete', old.id, old.command, old.error_pattern, old.context_tags);
END;
CREATE TRIGGER IF NOT EXISTS community_brain_au AFTER UPDATE OF command, error_pattern, context_tags
ON community_brain BEGIN
    INSERT INTO community_brain_fts(community_brain_fts, rowid, command, error_pattern, context_tags)
    VALUES ('delete', old.id, old.command, old.error_pattern, old.context_tags);
    INSERT INTO community_brain_fts(rowid, command, error_pattern, context_tags)
    VALUES (new.id, new.command, new.error_pattern, new.context_tags);
END;
"""
MEMORY_DB = ":memory:"
# ─── Database Initialization ─────────────────────────────────────────────────
def init_database(db_path: str, schema_sql: str) -> sqlite3.Connection:
    """
    Create database and tables if they don't exist.
    Returns an open connection. Raises StorageUnavailableError if the
    file or schema cannot be set up at all.
    """
    try:
        if db_path != MEMORY_DB:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        # Recall queries both stores from worker threads
        conn = sqlite3.connect(db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if db_path != MEMORY_DB:
            conn.execute("PRAGMA journal_mode=WAL")      # Concurrent readers/writers
        conn.executescript(schema_sql)
        conn.commit()
    except (OSError, sqlite3.Error) as e:
        raise StorageUnavailableError(db_path, str(e)) from e
    return conn
# ─── Serialization ───────────────────────────────────────────────────────────
def serialize_history_entry(entry: HistoryEntry) -> tuple:
    """Convert HistoryEntry to a tuple for SQL INSERT."""
    return (
        entry.command,
        entry.working_dir or "",
        entry.exit_code,
        int(entry.timestamp),
        entry.command_normalized,
    )
def deserialize_history_entry(row: sqlite3.Row) -> HistoryEntry:
    return HistoryEntry(
        command=row["command"],
        working_dir=row["working_dir"],
        exit_code=row["exit_code"],
        timestamp=row["timestamp"],
    )
def serialize_brain_entry(entry: BrainEntry, created_at: int) -> tuple:
    """Convert BrainEntry to a tuple for SQL INSERT. None pattern → ''."""
    return (
        entry.command,
        entry.error_pattern or "",
        entry.context_tags,
        int(entry.success_count),
        int(entry.fail_count),
        entry.provenance,
        int(created_at),
    )
def deserialize_brain_entry(row: sqlite3.Row) -> BrainEntry:
    return BrainEntry(
        id=row["id"],
        command=row["command"],
        error_pattern=_none_if_empty(row["error_pattern"]),
        context_tags=row["context_tags"],
        success_count=row["success_count"],
        fail_count=row["fail_count"],
        provenance=row["provenance"],
        created_at=row["created_at"],
    )
def _none_if_empty(value: Optional[str]) -> Optional[str]:
    return value if value else None
