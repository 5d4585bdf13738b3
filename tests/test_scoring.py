"""
Tests for the pure scoring and normalisation helpers in core.types.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from aethr.core.types import (
    BrainEntry, ProjectContext, SECONDS_PER_DAY,
    compute_recency_score, compute_frequency_score, compute_combined_score,
    compute_success_rate, normalize_command, normalize_error_pattern, split_tags,
)


# ─── Recency / Frequency ─────────────────────────────────────────────────────

def test_recency_endpoints():
    assert compute_recency_score(0) == 1.0
    assert abs(compute_recency_score(SECONDS_PER_DAY) - 0.5) < 1e-9
    assert abs(compute_recency_score(SECONDS_PER_DAY * 31) - 0.1) < 1e-9
    assert compute_recency_score(SECONDS_PER_DAY * 365) == 0.1
    print("  PASS: recency_endpoints")


def test_recency_future_timestamp_counts_as_now():
    assert compute_recency_score(-3600) == 1.0
    print("  PASS: recency_future_timestamp")


def test_frequency_bounds():
    assert compute_frequency_score(0) == 0.1
    assert compute_frequency_score(1) == 0.1
    assert compute_frequency_score(50) == 0.5
    assert compute_frequency_score(100) == 1.0
    assert compute_frequency_score(5000) == 1.0
    print("  PASS: frequency_bounds")


def test_combined_score_monotonic():
    """Non-increasing in age at fixed frequency, non-decreasing in frequency at fixed age."""
    ages = [0, 60, 3600, SECONDS_PER_DAY // 2, SECONDS_PER_DAY,
            SECONDS_PER_DAY * 7, SECONDS_PER_DAY * 31, SECONDS_PER_DAY * 400]
    freqs = [0, 1, 5, 10, 50, 99, 100, 1000]
    for freq in freqs:
        f = compute_frequency_score(freq)
        scores = [compute_combined_score(compute_recency_score(a), f) for a in ages]
        assert all(a >= b for a, b in zip(scores, scores[1:])), (freq, scores)
    for age in ages:
        r = compute_recency_score(age)
        assert 0.1 <= r <= 1.0
        scores = [compute_combined_score(r, compute_frequency_score(q)) for q in freqs]
        assert all(a <= b for a, b in zip(scores, scores[1:])), (age, scores)
    print("  PASS: combined_score_monotonic")


def test_combined_score_weights():
    assert abs(compute_combined_score(1.0, 1.0) - 1.0) < 1e-9
    assert abs(compute_combined_score(0.5, 0.1) - 0.34) < 1e-9
    print("  PASS: combined_score_weights")


# ─── Success Rate ────────────────────────────────────────────────────────────

def test_success_rate_defaults_to_fifty():
    assert compute_success_rate(0, 0) == 50.0
    assert BrainEntry(command="ls").success_rate() == 50.0
    print("  PASS: success_rate_default")


def test_success_rate_ratio():
    assert compute_success_rate(8, 2) == 80.0
    assert compute_success_rate(0, 3) == 0.0
    assert compute_success_rate(4, 0) == 100.0
    print("  PASS: success_rate_ratio")


# ─── Normalisation ───────────────────────────────────────────────────────────

def test_normalize_error_pattern_caps_tokens():
    text = "one two three four five six seven eight nine ten eleven twelve"
    assert normalize_error_pattern(text) == "one two three four five six seven eight nine ten"
    print("  PASS: normalize_error_pattern_tokens")


def test_normalize_error_pattern_caps_chars_first():
    text = "x" * 150 + " tail"
    assert normalize_error_pattern(text) == "x" * 100
    print("  PASS: normalize_error_pattern_chars")


def test_normalize_error_pattern_collapses_whitespace():
    """Trivially different spacing lands on the same key."""
    a = normalize_error_pattern("Error:   cannot\tfind module 'x'")
    b = normalize_error_pattern("Error: cannot find module 'x'\n")
    assert a == b
    print("  PASS: normalize_error_pattern_whitespace")


def test_normalize_command():
    assert normalize_command("  Git Status ") == "git status"
    print("  PASS: normalize_command")


def test_split_tags_and_context():
    assert split_tags("nodejs, docker,,") == ["nodejs", "docker"]
    assert split_tags(None) == []
    ctx = ProjectContext.from_tags(["nodejs", "docker", ""])
    assert ctx.tag_string() == "docker,nodejs"
    assert ctx.has_tag("docker")
    assert not ProjectContext()
    print("  PASS: split_tags_and_context")
