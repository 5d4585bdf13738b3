"""
Aethr — Local History Store
SQLite-backed append-only log of executed commands with full-text search
and recency + frequency scoring. Rows are never updated, only appended.
"""
import time
from typing import List, Optional, Iterable
from ..core.types import (
    HistoryEntry, CommandScore,
    compute_recency_score, compute_frequency_score, compute_combined_score,
)
from ..retrieval.token_extractor import history_query_tokens, build_fts_or_query
from .schema import (
    HISTORY_SCHEMA_SQL, init_database,
    serialize_history_entry, deserialize_history_entry,
)
_INSERT_SQL = """INSERT OR IGNORE INTO command_history
   (command, working_dir, exit_code, timestamp, command_normalized)
   VALUES (?, ?, ?, ?, ?)"""
class HistoryStore:
    """
    Personal command history.
    Exact duplicates on (command, working_dir, timestamp) are ignored at
    insert time, so re-importing the same log is harmless.
    """
    def __init__(self, db_path: str = "history.db"):
        self.db_path = db_path
        self.conn = init_database(db_path, HISTORY_SCHEMA_SQL)
    # ─── Write Operations ────────────────────────────────────────────────
    def insert(
        self,
        command: str,
        working_dir: str = "",
        exit_code: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Append one command. Returns False when it was an exact duplicate."""
        entry = HistoryEntry(
            command=command,
            working_dir=working_dir,
            exit_code=exit_code,
            timestamp=int(time.time()) if timestamp is None else int(timestamp),
        )
        return self.insert_entry(entry)
    def insert_entry(self, entry: HistoryEntry) -> bool:
        if not entry.command.strip():
            return False
        cursor = self.conn.execute(_INSERT_SQL, serialize_history_entry(entry))
        self.conn.commit()
        return cursor.rowcount > 0
    def insert_batch(self, entries: Iterable[HistoryEntry]) -> int:
        """Bulk append in one transaction. Returns the number of new rows."""
        rows = [
            serialize_history_entry(e) for e in entries
            if e.command.strip()
        ]
        if not rows:
            return 0
        with self.conn:
            cursor = self.conn.executemany(_INSERT_SQL, rows)
        # rowcount sums direct changes only; ignored duplicates add 0
        return max(0, cursor.rowcount)
    # ─── Read Operations ─────────────────────────────────────────────────
    def search(self, query: str, limit: int = 10) -> List[str]:
        """Raw commands matching any query token, newest first."""
        fts_query = build_fts_or_query(history_query_tokens(query))
        if not fts_query:
            return []
        rows = self.conn.execute(
            """SELECT h.command
               FROM command_fts
               JOIN command_history h ON h.id = command_fts.rowid
               WHERE command_fts MATCH ?
               ORDER BY h.timestamp DESC
               LIMIT ?""",
            (fts_query, limit)
        ).fetchall()
        return [row["command"] for row in rows]
    def search_scored(
        self, query: str, limit: int = 10, now: Optional[float] = None
    ) -> List[CommandScore]:
        """
        Matching commands grouped by normalized form, each scored by
        recency (of the latest use) and frequency (uses in the group).
        Returns best combined score first.
        """
        fts_query = build_fts_or_query(history_query_tokens(query))
        if not fts_query:
            return []
        if now is None:
            now = time.time()
        # With MAX(), SQLite takes bare columns from the row holding the max
        rows = self.conn.execute(
            """SELECT h.command AS command,
                      MAX(h.timestamp) AS last_used,
                      COUNT(*) AS frequency
               FROM command_fts
               JOIN command_history h ON h.id = command_fts.rowid
               WHERE command_fts MATCH ?
               GROUP BY h.command_normalized
               ORDER BY last_used DESC
               LIMIT ?""",
            (fts_query, limit)
        ).fetchall()
        results = []
        for row in rows:
            recency = compute_recency_score(now - row["last_used"])
            frequency = compute_frequency_score(row["frequency"])
            results.append(CommandScore(
                command=row["command"],
                timestamp=row["last_used"],
                frequency=row["frequency"],
                recency_score=recency,
                frequency_score=frequency,
                combined_score=compute_combined_score(recency, frequency),
            ))
        results.sort(key=lambda s: s.combined_score, reverse=True)
        return results
    def recent(self, limit: int = 20) -> List[HistoryEntry]:
        rows = self.conn.execute(
            "SELECT * FROM command_history ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,)
        ).fetchall()
        return [deserialize_history_entry(r) for r in rows]
    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM command_history").fetchone()
        return row[0]
    def close(self):
        self.conn.close()
# ─── Command Log Import ──────────────────────────────────────────────────────
def parse_command_log(
    lines: Iterable[str], working_dir: str = ".", now: Optional[int] = None
) -> List[HistoryEntry]:
    """
    Parse the shell-hook log: one `<epoch>\\t<command>` per line.
    Blank lines and lines without a command are skipped; an unparsable
    timestamp falls back to `now`.
    """
    if now is None:
        now = int(time.time())
    entries = []
    for line in lines:
        line = line.rstrip("\n")
        if not line.strip():
            continue
        ts_part, _, cmd_part = line.partition("\t")
        cmd_part = cmd_part.strip()
        if not cmd_part:
            continue
        try:
            timestamp = int(ts_part.strip())
        except ValueError:
            timestamp = now
        entries.append(HistoryEntry(
            command=cmd_part,
            working_dir=working_dir,
            exit_code=0,
            timestamp=timestamp,
        ))
    return entries
