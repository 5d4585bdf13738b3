"""
Aethr — Core Data Types
All shared dataclasses, enums and scoring helpers used across the system.
This is the foundational contract that all components build on.
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, FrozenSet, Iterable
from enum import Enum
import time
# ─── Enums ───────────────────────────────────────────────────────────────────
class ResultSource(Enum):
    RULE = "rule"
    HISTORY = "history"
    COMMUNITY = "community"
    LLM = "llm"
class FixLayer(Enum):
    RULE_MATCH = "rule_match"
    COMMUNITY_MATCH = "community_match"
    LLM_FALLBACK = "llm_fallback"
    NO_FIX = "no_fix"
class Provenance(Enum):
    USER = "user"
    SEED = "seed"
# ─── Scoring Constants ───────────────────────────────────────────────────────
SECONDS_PER_DAY = 24 * 60 * 60
RECENCY_FRESH_WINDOW = SECONDS_PER_DAY          # 1.0 → 0.5 over the first day
RECENCY_DECAY_WINDOW = 30 * SECONDS_PER_DAY     # 0.5 → 0.1 over the next 30 days
RECENCY_FLOOR = 0.1
FREQUENCY_CAP = 100
FREQUENCY_FLOOR = 0.1
RECENCY_WEIGHT = 0.6
FREQUENCY_WEIGHT = 0.4
DEFAULT_SUCCESS_RATE = 50.0                     # Untouched KB rows
DEFAULT_RULE_CONFIDENCE = 0.6
ERROR_PATTERN_MAX_CHARS = 100
ERROR_PATTERN_MAX_TOKENS = 10
# ─── Core Data Structures ────────────────────────────────────────────────────
@dataclass(frozen=True)
class ProjectContext:
    """
    Technology tags detected in a project directory.
    Tags are unique and unordered; derived fresh per query, never persisted.
    """
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_tags(cls, tags: Iterable[str]) -> "ProjectContext":
        return cls(tags=frozenset(t for t in tags if t))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def sorted_tags(self) -> List[str]:
        return sorted(self.tags)

    def tag_string(self) -> str:
        """Comma-joined tags, sorted for a stable storage key."""
        return ",".join(self.sorted_tags())

    def __bool__(self) -> bool:
        return bool(self.tags)
@dataclass(frozen=True)
class HistoryEntry:
    """One executed shell command. Immutable once stored."""
    command: str
    working_dir: str = ""
    exit_code: Optional[int] = None
    timestamp: int = field(default_factory=lambda: int(time.time()))

    @property
    def command_normalized(self) -> str:
        return normalize_command(self.command)
@dataclass
class CommandScore:
    """A grouped history hit with its recency/frequency relevance."""
    command: str
    timestamp: int
    frequency: int
    recency_score: float
    frequency_score: float
    combined_score: float
@dataclass
class BrainEntry:
    """
    One community fix row.
    Unique per (command, error_pattern); repeated inserts add to counters.
    """
    command: str
    error_pattern: Optional[str] = None
    context_tags: Optional[str] = None       # comma-joined
    success_count: int = 0
    fail_count: int = 0
    provenance: Optional[str] = None         # "user" | "seed"
    created_at: Optional[int] = None         # epoch seconds; None = now
    id: Optional[int] = None

    def success_rate(self) -> float:
        return compute_success_rate(self.success_count, self.fail_count)

    def tag_list(self) -> List[str]:
        return split_tags(self.context_tags)
@dataclass
class BrainResult:
    """A scored Knowledge Base hit."""
    command: str
    error_pattern: Optional[str]
    context_tags: Optional[str]
    success_count: int
    fail_count: int
    success_rate: float
    score: float

    @property
    def total_uses(self) -> int:
        return self.success_count + self.fail_count
@dataclass
class Rule:
    """A declarative error → fix rule. Earlier rules win."""
    name: str
    match_regex: str
    fix_command: str
    confidence: float = DEFAULT_RULE_CONFIDENCE
    explanation: str = ""
@dataclass
class RuleMatch:
    """A rule that matched, with its placeholders substituted."""
    command: str
    confidence: float
    explanation: str = ""
    rule_name: str = ""
@dataclass
class FixSuggestion:
    """What a model adapter hands back. An empty command means no fix."""
    command: str = ""
    explanation: str = ""
@dataclass
class ScoredResult:
    """Transient ranking record, scoped to a single resolution call."""
    command: str
    source: ResultSource
    score: float
    frequency: Optional[int] = None
    success_rate: Optional[float] = None
    boosted: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
@dataclass
class FixResponse:
    """
    Outcome of a fix request.
    found=False with layer NO_FIX is the explicit "no fix found" signal;
    attempted_layers names every layer that was actually consulted.
    """
    found: bool
    layer: FixLayer = FixLayer.NO_FIX
    command: str = ""
    source: Optional[ResultSource] = None
    confidence: Optional[float] = None       # 0-1, rules only
    success_rate: Optional[float] = None     # 0-100, community only
    explanation: str = ""
    verified: bool = True                    # False for model suggestions
    alternates: List[ScoredResult] = field(default_factory=list)
    attempted_layers: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    context: ProjectContext = field(default_factory=ProjectContext)
    error_pattern: str = ""
    feedback: Optional[bool] = None          # set once the caller confirms
@dataclass
class RecallResponse:
    """Merged, ranked recall results."""
    found: bool
    results: List[ScoredResult] = field(default_factory=list)
    context: ProjectContext = field(default_factory=ProjectContext)
    search_time_ms: float = 0.0
    warnings: List[str] = field(default_factory=list)

    @property
    def boosted_count(self) -> int:
        return sum(1 for r in self.results if r.boosted)
# ─── Utility Functions ────────────────────────────────────────────────────────
def normalize_command(command: str) -> str:
    """Trimmed, lower-cased form used as the history grouping key."""
    return command.strip().lower()


def normalize_error_pattern(error_text: str) -> str:
    """
    Collapse an error string into a stable Knowledge Base key:
    first 100 characters, then the first 10 whitespace-separated tokens.
    """
    head = error_text[:ERROR_PATTERN_MAX_CHARS]
    return " ".join(head.split()[:ERROR_PATTERN_MAX_TOKENS])


def split_tags(tag_string: Optional[str]) -> List[str]:
    if not tag_string:
        return []
    return [t.strip() for t in tag_string.split(",") if t.strip()]


def compute_recency_score(age_seconds: float) -> float:
    """
    Linear decay: 1.0 → 0.5 across the first 24 hours, then
    0.5 → 0.1 across the following 30 days. Never below 0.1.
    Future timestamps count as age zero.
    """
    age = max(0.0, float(age_seconds))
    if age < RECENCY_FRESH_WINDOW:
        score = 1.0 - (age / RECENCY_FRESH_WINDOW) * 0.5
    else:
        score = 0.5 - ((age - RECENCY_FRESH_WINDOW) / RECENCY_DECAY_WINDOW) * 0.4
    return max(RECENCY_FLOOR, score)


def compute_frequency_score(frequency: int) -> float:
    """min(frequency, 100) / 100, clamped to [0.1, 1.0]."""
    score = min(frequency, FREQUENCY_CAP) / float(FREQUENCY_CAP)
    return min(1.0, max(FREQUENCY_FLOOR, score))


def compute_combined_score(recency_score: float, frequency_score: float) -> float:
    return RECENCY_WEIGHT * recency_score + FREQUENCY_WEIGHT * frequency_score


def compute_success_rate(success_count: int, fail_count: int) -> float:
    """Percentage of confirmed successes; 50.0 when nothing is recorded."""
    total = success_count + fail_count
    if total <= 0:
        return DEFAULT_SUCCESS_RATE
    return (success_count / total) * 100.0
