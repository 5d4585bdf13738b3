"""
Tests for the local history store: dedup, FTS search, scored grouping,
and command-log import.
"""
import os
import sys
import tempfile

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from aethr.core.types import HistoryEntry, SECONDS_PER_DAY
from aethr.storage.history import HistoryStore, parse_command_log

NOW = 1_750_000_000


def _make_store():
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    return HistoryStore(db_path), db_path


def _safe_cleanup(store, db_path):
    """Close DB and remove file (Windows-safe)."""
    store.close()
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(db_path + suffix)
        except OSError:
            pass


def test_duplicate_insert_is_noop():
    store, db_path = _make_store()
    try:
        assert store.insert("git status", "/repo", 0, NOW) is True
        assert store.insert("git status", "/repo", 0, NOW) is False
        assert store.count() == 1
        # Different timestamp or directory is a new row
        assert store.insert("git status", "/repo", 0, NOW + 1) is True
        assert store.insert("git status", "/other", 0, NOW) is True
        assert store.count() == 3
        print("  PASS: duplicate_insert_is_noop")
    finally:
        _safe_cleanup(store, db_path)


def test_blank_command_is_ignored():
    store, db_path = _make_store()
    try:
        assert store.insert("   ", timestamp=NOW) is False
        assert store.count() == 0
        print("  PASS: blank_command_is_ignored")
    finally:
        _safe_cleanup(store, db_path)


def test_insert_batch_counts_new_rows_only():
    store, db_path = _make_store()
    try:
        entries = [
            HistoryEntry(command="ls -la", working_dir="/a", timestamp=NOW),
            HistoryEntry(command="ls -la", working_dir="/a", timestamp=NOW),
            HistoryEntry(command="make build", working_dir="/a", timestamp=NOW),
        ]
        assert store.insert_batch(entries) == 2
        assert store.insert_batch(entries) == 0
        assert store.count() == 2
        assert store.insert_batch([]) == 0
        print("  PASS: insert_batch_counts_new_rows_only")
    finally:
        _safe_cleanup(store, db_path)


def test_search_newest_first():
    store, db_path = _make_store()
    try:
        store.insert("docker ps", timestamp=NOW - 100)
        store.insert("docker build .", timestamp=NOW)
        store.insert("npm test", timestamp=NOW)
        assert store.search("docker") == ["docker build .", "docker ps"]
        assert store.search("docker", limit=1) == ["docker build ."]
        print("  PASS: search_newest_first")
    finally:
        _safe_cleanup(store, db_path)


def test_search_tolerates_quotes_and_operators():
    store, db_path = _make_store()
    try:
        store.insert('git commit -m "fix AND test"', timestamp=NOW)
        assert store.search('"git') == ['git commit -m "fix AND test"']
        # Operators are matched as plain words, never parsed
        assert store.search("AND OR NOT (") == ['git commit -m "fix AND test"']
        assert store.search("") == []
        assert store.search("   ") == []
        print("  PASS: search_tolerates_quotes_and_operators")
    finally:
        _safe_cleanup(store, db_path)


def test_search_scored_groups_by_normalized_command():
    store, db_path = _make_store()
    try:
        for i in range(5):
            store.insert("git status", timestamp=NOW - 1000 - i)
        store.insert("Git Status", timestamp=NOW - 10)
        store.insert("git push", timestamp=NOW - 30 * SECONDS_PER_DAY)
        scores = store.search_scored("git", now=NOW)
        by_cmd = {s.command.lower(): s for s in scores}
        assert len(scores) == 2
        status = by_cmd["git status"]
        assert status.frequency == 6
        assert status.timestamp == NOW - 10
        # Representative text comes from the most recent row
        assert status.command == "Git Status"
        assert scores[0].command == "Git Status"
        assert by_cmd["git push"].frequency == 1
        assert status.combined_score > by_cmd["git push"].combined_score
        print("  PASS: search_scored_groups")
    finally:
        _safe_cleanup(store, db_path)


def test_search_scored_respects_bounds():
    store, db_path = _make_store()
    try:
        store.insert("cargo build", timestamp=NOW - 400 * SECONDS_PER_DAY)
        store.insert("cargo test", timestamp=NOW + 3600)
        scores = {s.command: s for s in store.search_scored("cargo", now=NOW)}
        old = scores["cargo build"]
        future = scores["cargo test"]
        assert old.recency_score == 0.1
        assert future.recency_score == 1.0
        for s in scores.values():
            assert 0.1 <= s.frequency_score <= 1.0
        print("  PASS: search_scored_respects_bounds")
    finally:
        _safe_cleanup(store, db_path)


def test_recent_returns_latest_entries():
    store, db_path = _make_store()
    try:
        store.insert("first", timestamp=NOW - 2)
        store.insert("second", timestamp=NOW - 1)
        store.insert("third", timestamp=NOW)
        recent = store.recent(limit=2)
        assert [e.command for e in recent] == ["third", "second"]
        print("  PASS: recent_returns_latest_entries")
    finally:
        _safe_cleanup(store, db_path)


def test_in_memory_store():
    store = HistoryStore(":memory:")
    try:
        store.insert("echo hi", timestamp=NOW)
        assert store.count() == 1
        print("  PASS: in_memory_store")
    finally:
        store.close()


# ─── Command Log Import ──────────────────────────────────────────────────────

def test_parse_command_log():
    lines = [
        f"{NOW}\tgit status\n",
        "\n",
        f"{NOW + 1}\t   \n",
        "garbage\tnpm install\n",
        f"{NOW + 2}\tls -la\n",
    ]
    entries = parse_command_log(lines, working_dir="/proj", now=42)
    assert [e.command for e in entries] == ["git status", "npm install", "ls -la"]
    assert entries[0].timestamp == NOW
    assert entries[1].timestamp == 42
    assert all(e.working_dir == "/proj" for e in entries)
    print("  PASS: parse_command_log")


def test_reimporting_log_is_idempotent():
    store, db_path = _make_store()
    try:
        lines = [f"{NOW}\tgit status", f"{NOW + 5}\tgit push"]
        assert store.insert_batch(parse_command_log(lines)) == 2
        assert store.insert_batch(parse_command_log(lines)) == 0
        assert store.count() == 2
        print("  PASS: reimporting_log_is_idempotent")
    finally:
        _safe_cleanup(store, db_path)
