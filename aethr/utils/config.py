"""
Aethr — Configuration
Loads settings from environment variables / .env file.
The resulting AethrConfig is passed explicitly into the orchestrator;
nothing below the CLI reads the environment on its own.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List
from .platform_utils import get_data_dir, get_bundled_data_dir
RULES_FILENAME = "error_rules.yaml"
SEED_FILENAME = "seed_moat.json"
@dataclass
class AethrConfig:
    """All configuration for Aethr."""
    # Storage (empty paths resolve under data_dir)
    data_dir: str = ""
    history_db_path: str = ""
    brain_db_path: str = ""
    rules_path: str = ""
    seed_path: str = ""
    # Model fallback
    anthropic_api_key: str = ""
    llm_model: str = "claude-haiku-4-5-20251001"
    llm_timeout_seconds: float = 30.0
    llm_max_tokens: int = 300
    # Ranking
    recall_limit: int = 10
    history_search_limit: int = 10
    community_fix_limit: int = 3                  # Top fix + alternates
    community_recall_baseline: float = 0.75       # Base score of KB hits in recall
    # Knowledge base
    auto_seed: bool = True                        # Load curated fixes into an empty KB
    # Logging
    log_level: str = "WARNING"
    debug_mode: bool = False
    @classmethod
    def from_env(cls, env_path: str = ".env") -> "AethrConfig":
        """Load configuration from environment variables."""
        # Try loading .env file if it exists
        env_file = Path(env_path)
        if env_file.exists():
            _load_dotenv(env_file)
        debug_mode = os.getenv("AETHR_DEBUG", "false").lower() == "true"
        return cls(
            data_dir=os.getenv("AETHR_DATA_DIR", ""),
            history_db_path=os.getenv("AETHR_HISTORY_DB", ""),
            brain_db_path=os.getenv("AETHR_BRAIN_DB", ""),
            rules_path=os.getenv("AETHR_RULES_PATH", ""),
            seed_path=os.getenv("AETHR_SEED_PATH", ""),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            llm_model=os.getenv("AETHR_LLM_MODEL", cls.llm_model),
            llm_timeout_seconds=float(os.getenv("AETHR_LLM_TIMEOUT", str(cls.llm_timeout_seconds))),
            llm_max_tokens=int(os.getenv("AETHR_LLM_MAX_TOKENS", str(cls.llm_max_tokens))),
            recall_limit=int(os.getenv("AETHR_RECALL_LIMIT", str(cls.recall_limit))),
            history_search_limit=int(os.getenv("AETHR_HISTORY_SEARCH_LIMIT", str(cls.history_search_limit))),
            community_fix_limit=int(os.getenv("AETHR_COMMUNITY_FIX_LIMIT", str(cls.community_fix_limit))),
            community_recall_baseline=float(os.getenv("AETHR_COMMUNITY_BASELINE", str(cls.community_recall_baseline))),
            auto_seed=os.getenv("AETHR_AUTO_SEED", "true").lower() == "true",
            log_level=os.getenv("AETHR_LOG_LEVEL", "DEBUG" if debug_mode else cls.log_level),
            debug_mode=debug_mode,
        )
    # ─── Derived Paths ───────────────────────────────────────────────────
    @property
    def resolved_data_dir(self) -> str:
        return self.data_dir or get_data_dir()
    @property
    def resolved_history_db(self) -> str:
        return self.history_db_path or os.path.join(self.resolved_data_dir, "history.db")
    @property
    def resolved_brain_db(self) -> str:
        return self.brain_db_path or os.path.join(self.resolved_data_dir, "brain.db")
    @property
    def resolved_rules_path(self) -> str:
        """Explicit path, else a user file in data_dir, else the bundled rules."""
        if self.rules_path:
            return self.rules_path
        user_rules = os.path.join(self.resolved_data_dir, RULES_FILENAME)
        if os.path.exists(user_rules):
            return user_rules
        return os.path.join(get_bundled_data_dir(), RULES_FILENAME)
    @property
    def resolved_seed_path(self) -> str:
        return self.seed_path or os.path.join(get_bundled_data_dir(), SEED_FILENAME)
    def validate(self) -> List[str]:
        """Return list of warnings (non-fatal). Empty if fully configured."""
        warnings = []
        if not self.anthropic_api_key:
            warnings.append(
                "ANTHROPIC_API_KEY not set: model fallback disabled "
                "(rules and community fixes only)"
            )
        if self.llm_timeout_seconds <= 0:
            warnings.append("AETHR_LLM_TIMEOUT must be positive; model calls would never return")
        if self.recall_limit <= 0:
            warnings.append("AETHR_RECALL_LIMIT must be positive; recall will return nothing")
        if self.rules_path and not os.path.exists(self.rules_path):
            warnings.append(f"Rules file {self.rules_path} not found: rule layer disabled")
        return warnings

    @property
    def has_api_key(self) -> bool:
        """Whether an Anthropic API key is configured."""
        return bool(self.anthropic_api_key)
def _load_dotenv(path: Path):
    """Minimal .env loader. Never overrides variables already set."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip("'\"")
                if key and not os.environ.get(key):
                    os.environ[key] = value
    except OSError:
        # Unreadable .env is the same as no .env
        return
