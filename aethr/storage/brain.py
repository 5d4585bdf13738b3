"""
Aethr — Community Knowledge Base
SQLite-backed table of community fixes with full-text search over
command, originating error and tags, scored by confirmed success rate.
Rows are upserted (counters summed), never deleted in normal operation.
"""
import json
import time
from typing import List, Optional, Iterable, Union
from ..core.types import (
    BrainEntry, BrainResult, Provenance, split_tags, compute_success_rate,
)
from ..retrieval.token_extractor import brain_query_tokens, build_fts_or_query
from .schema import (
    BRAIN_SCHEMA_SQL, init_database,
    serialize_brain_entry, deserialize_brain_entry,
)
from .seed_data import SEED_FIXES, SEED_CREATED_AT
# Per matching context tag; stacks multiplicatively
CONTEXT_TAG_BOOST = 1.5
# Applied once when a fix has been confirmed more than HIGH_USAGE_THRESHOLD times
HIGH_USAGE_BOOST = 1.2
HIGH_USAGE_THRESHOLD = 10
_UPSERT_SQL = """INSERT INTO community_brain
   (command, error_pattern, context_tags, success_count, fail_count,
    provenance, created_at)
   VALUES (?, ?, ?, ?, ?, ?, ?)
   ON CONFLICT(command, error_pattern) DO UPDATE SET
       success_count = success_count + excluded.success_count,
       fail_count = fail_count + excluded.fail_count"""
class CommunityBrain:
    """
    Shared knowledge of which command fixed which error.
    Uniqueness: one row per (command, error_pattern).
    """
    def __init__(self, db_path: str = "brain.db"):
        self.db_path = db_path
        self.conn = init_database(db_path, BRAIN_SCHEMA_SQL)
    # ─── Write Operations ────────────────────────────────────────────────
    def insert(self, entry: BrainEntry) -> None:
        """Upsert keyed on (command, error_pattern); counters are summed."""
        created_at = entry.created_at if entry.created_at is not None else int(time.time())
        self.conn.execute(_UPSERT_SQL, serialize_brain_entry(entry, created_at))
        self.conn.commit()
    def insert_batch(self, entries: Iterable[BrainEntry]) -> int:
        now = int(time.time())
        rows = [
            serialize_brain_entry(e, e.created_at if e.created_at is not None else now)
            for e in entries if e.command.strip()
        ]
        if not rows:
            return 0
        with self.conn:
            self.conn.executemany(_UPSERT_SQL, rows)
        return len(rows)
    def log_success(
        self, command: str, error_pattern: str, context_tags: Optional[str] = None
    ) -> None:
        """Record one confirmed fix (creates the row if new)."""
        self.insert(BrainEntry(
            command=command,
            error_pattern=error_pattern,
            context_tags=context_tags or None,
            success_count=1,
            fail_count=0,
            provenance=Provenance.USER.value,
        ))
    def log_failure(self, command: str, error_pattern: str) -> bool:
        """
        Count one failed attempt against an existing row.
        No-op (returns False) when the row does not exist.
        """
        cursor = self.conn.execute(
            """UPDATE community_brain SET fail_count = fail_count + 1
               WHERE command = ? AND error_pattern = ?""",
            (command, error_pattern or "")
        )
        self.conn.commit()
        return cursor.rowcount > 0
    # ─── Read Operations ─────────────────────────────────────────────────
    def search_with_scores(
        self,
        query: str,
        context_tags: Optional[Iterable[str]] = None,
        limit: int = 10,
    ) -> List[BrainResult]:
        """
        Fixes matching any query token, scored:
            score = success_rate
                    × 1.5 per filter tag present in the row's tags
                    × 1.2 if the fix has more than 10 recorded outcomes
        Candidates are fetched by success count then recency; the
        returned list is sorted by score, best first.
        """
        fts_query = build_fts_or_query(brain_query_tokens(query))
        if not fts_query:
            return []
        rows = self.conn.execute(
            """SELECT b.command, b.error_pattern, b.context_tags,
                      b.success_count, b.fail_count
               FROM community_brain_fts fts
               JOIN community_brain b ON b.id = fts.rowid
               WHERE community_brain_fts MATCH ?
               ORDER BY b.success_count DESC, b.created_at DESC
               LIMIT ?""",
            (fts_query, limit)
        ).fetchall()
        filter_tags = [t for t in (context_tags or []) if t]
        results = []
        for row in rows:
            success_count = row["success_count"]
            fail_count = row["fail_count"]
            success_rate = compute_success_rate(success_count, fail_count)
            score = success_rate
            row_tags = set(split_tags(row["context_tags"]))
            for tag in filter_tags:
                if tag in row_tags:
                    score *= CONTEXT_TAG_BOOST
            if success_count + fail_count > HIGH_USAGE_THRESHOLD:
                score *= HIGH_USAGE_BOOST
            results.append(BrainResult(
                command=row["command"],
                error_pattern=row["error_pattern"] or None,
                context_tags=row["context_tags"],
                success_count=success_count,
                fail_count=fail_count,
                success_rate=success_rate,
                score=score,
            ))
        results.sort(key=lambda r: r.score, reverse=True)
        return results
    def search(
        self,
        query: str,
        context_tags: Optional[Iterable[str]] = None,
        limit: int = 10,
    ) -> List[str]:
        """Commands only, best first."""
        return [r.command for r in self.search_with_scores(query, context_tags, limit)]
    def get(self, command: str, error_pattern: Optional[str] = None) -> Optional[BrainEntry]:
        row = self.conn.execute(
            "SELECT * FROM community_brain WHERE command = ? AND error_pattern = ?",
            (command, error_pattern or "")
        ).fetchone()
        if row:
            return deserialize_brain_entry(row)
        return None
    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM community_brain").fetchone()
        return row[0]
    # ─── Seeding ─────────────────────────────────────────────────────────
    def seed_if_empty(self) -> int:
        """
        Load the curated default fixes into an empty table.
        No-op on a populated table. Returns rows written.
        """
        if self.count() > 0:
            return 0
        entries = [
            BrainEntry(
                command=command,
                error_pattern=error,
                context_tags=tags,
                success_count=success,
                fail_count=fail,
                provenance=Provenance.SEED.value,
                created_at=SEED_CREATED_AT,
            )
            for command, error, tags, success, fail in SEED_FIXES
        ]
        return self.insert_batch(entries)
    def seed_from_file(self, path: str) -> int:
        """
        Load a JSON seed file: a list of
        {command, context_tags?, success_score?, provenance?, error_pattern?}.
        Tags may be a list or a comma-joined string. Returns rows written.
        Raises ValueError when the file is not a JSON list.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Seed file {path} must contain a JSON list")
        entries = []
        for item in data:
            if not isinstance(item, dict) or not str(item.get("command", "")).strip():
                continue
            entries.append(BrainEntry(
                command=str(item["command"]).strip(),
                error_pattern=item.get("error_pattern") or None,
                context_tags=_join_tags(item.get("context_tags")),
                success_count=max(0, int(round(float(item.get("success_score") or 0)))),
                fail_count=0,
                provenance=item.get("provenance") or Provenance.SEED.value,
            ))
        return self.insert_batch(entries)
    def close(self):
        self.conn.close()
def _join_tags(tags: Union[None, str, List[str]]) -> Optional[str]:
    if not tags:
        return None
    if isinstance(tags, str):
        return ",".join(split_tags(tags)) or None
    return ",".join(str(t).strip() for t in tags if str(t).strip()) or None
