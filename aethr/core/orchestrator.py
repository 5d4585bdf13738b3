"""
Aethr — Resolution Orchestrator

The central hub between the CLI and the three fix sources:
- Rule Engine: deterministic regex → template rules
- Community Knowledge Base: fixes confirmed by users, scored by success rate
- Fix Adapter: optional remote model, consulted last

Two request types:
1. fix: layers are tried in strict order (rule → community → model) and
   the first usable result wins. The caller can confirm the suggestion,
   which feeds the outcome back into the Knowledge Base.
2. recall: history and Knowledge Base are queried concurrently, boosted
   by project context, merged, deduplicated and ranked.

Every layer degrades to "contributed nothing" on storage or transport
failure. Only a store that cannot be opened at all is fatal, and that
surfaces from from_config as StorageUnavailableError.

Usage:
    config = AethrConfig.from_env()
    orchestrator = ResolutionOrchestrator.from_config(config)
    response = await orchestrator.fix("Error: cannot find module 'express'")
    recall = await orchestrator.recall("docker compose")
"""
import asyncio
import os
import sqlite3
import time
from typing import Callable, Dict, Iterable, List, Optional, Any

import structlog

from .anthropic_adapter import AnthropicFixAdapter
from .errors import LLMTransportError, RuleFileError
from .llm_adapter import FixAdapter, NullFixAdapter
from .rules import RuleEngine
from .types import (
    FixLayer, FixResponse, ProjectContext, RecallResponse, ResultSource,
    ScoredResult, normalize_error_pattern,
)
from ..retrieval.context_detector import boost_multiplier, detect_project_context
from ..retrieval.token_extractor import extract_error_tokens
from ..storage.brain import CommunityBrain
from ..storage.history import HistoryStore, parse_command_log
from ..utils.config import AethrConfig

logger = structlog.get_logger()

# KB candidates fetched per fix request before scoring
COMMUNITY_CANDIDATE_LIMIT = 10

# Attempted-layer names reported on NO_FIX
LAYER_RULE = "rule"
LAYER_COMMUNITY = "community"
LAYER_LLM = "llm"

ConfirmCallback = Callable[[FixResponse], Optional[bool]]


class ResolutionOrchestrator:
    """
    Coordinates the fix pipeline and recall over injected collaborators.
    Construct directly with in-memory stores for tests, or via
    from_config() for the real on-disk setup.
    """

    def __init__(
        self,
        history: HistoryStore,
        brain: CommunityBrain,
        rule_engine: Optional[RuleEngine] = None,
        llm_adapter: Optional[FixAdapter] = None,
        config: Optional[AethrConfig] = None,
        startup_warnings: Optional[List[str]] = None,
    ):
        self.history = history
        self.brain = brain
        self.rules = rule_engine if rule_engine is not None else RuleEngine()
        self.llm = llm_adapter if llm_adapter is not None else NullFixAdapter()
        self.config = config or AethrConfig()
        # Surfaced on every response so the user sees them at least once
        self._startup_warnings = list(startup_warnings or [])

    @classmethod
    def from_config(cls, config: AethrConfig) -> "ResolutionOrchestrator":
        """
        Open both stores, load rules and build the model adapter.
        Raises StorageUnavailableError when a database cannot be opened.
        """
        history = HistoryStore(config.resolved_history_db)
        brain = CommunityBrain(config.resolved_brain_db)

        warnings = []
        try:
            rule_engine = RuleEngine.from_file(config.resolved_rules_path)
        except RuleFileError as e:
            logger.warning("rules_load_failed", path=e.path, error=str(e))
            warnings.append(f"Rules disabled: {e}")
            rule_engine = RuleEngine()

        llm_adapter: FixAdapter = NullFixAdapter()
        if config.has_api_key:
            llm_adapter = AnthropicFixAdapter(
                api_key=config.anthropic_api_key,
                model=config.llm_model,
                timeout=config.llm_timeout_seconds,
                max_tokens=config.llm_max_tokens,
            )

        if config.auto_seed:
            seeded = brain.seed_if_empty()
            if seeded:
                logger.info("brain_seeded", rows=seeded)

        return cls(
            history=history,
            brain=brain,
            rule_engine=rule_engine,
            llm_adapter=llm_adapter,
            config=config,
            startup_warnings=warnings,
        )

    # ─── Fix Pipeline ────────────────────────────────────────────────────

    async def fix(
        self,
        error_text: str,
        cwd: Optional[str] = None,
        confirm: Optional[ConfirmCallback] = None,
    ) -> FixResponse:
        """
        Resolve an error to one fix, trying rule → community → model.
        If a fix is found and `confirm` is given, its True/False answer
        is recorded against the Knowledge Base; None records nothing.
        """
        context = _detect_context(cwd)
        response = FixResponse(
            found=False,
            context=context,
            error_pattern=normalize_error_pattern(error_text),
            warnings=list(self._startup_warnings),
        )

        found = (
            self._try_rules(error_text, response)
            or self._try_community(error_text, context, response)
            or await self._try_llm(error_text, context, response)
        )
        if not found:
            logger.debug("fix_not_found", attempted=response.attempted_layers)
            return response

        if confirm is not None:
            verdict = confirm(response)
            if verdict is not None:
                self.record_feedback(
                    response.command, error_text, bool(verdict), context.sorted_tags()
                )
                response.feedback = bool(verdict)
        return response

    def _try_rules(self, error_text: str, response: FixResponse) -> bool:
        response.attempted_layers.append(LAYER_RULE)
        match = self.rules.apply(error_text)
        if match is None:
            return False
        response.found = True
        response.layer = FixLayer.RULE_MATCH
        response.source = ResultSource.RULE
        response.command = match.command
        response.confidence = match.confidence
        response.explanation = match.explanation
        return True

    def _try_community(
        self, error_text: str, context: ProjectContext, response: FixResponse
    ) -> bool:
        response.attempted_layers.append(LAYER_COMMUNITY)
        tokens = extract_error_tokens(error_text)
        if not tokens:
            return False
        try:
            results = self.brain.search_with_scores(
                " ".join(tokens), context.sorted_tags(), COMMUNITY_CANDIDATE_LIMIT
            )
        except sqlite3.Error as e:
            logger.warning("community_search_failed", error=str(e))
            response.warnings.append(f"Knowledge base unavailable: {e}")
            return False
        if not results:
            return False

        top = results[0]
        response.found = True
        response.layer = FixLayer.COMMUNITY_MATCH
        response.source = ResultSource.COMMUNITY
        response.command = top.command
        response.success_rate = top.success_rate
        response.explanation = _community_explanation(top.total_uses)
        response.alternates = merge_results([
            ScoredResult(
                command=r.command,
                source=ResultSource.COMMUNITY,
                score=r.score,
                success_rate=r.success_rate,
            )
            for r in results[1:]
            if r.command != top.command
        ], max(0, self.config.community_fix_limit - 1))
        return True

    async def _try_llm(
        self, error_text: str, context: ProjectContext, response: FixResponse
    ) -> bool:
        if not self.llm.enabled:
            return False
        response.attempted_layers.append(LAYER_LLM)
        try:
            suggestion = await self.llm.get_fix(error_text, context)
        except LLMTransportError as e:
            logger.warning("llm_transport_error", error=str(e), status_code=e.status_code)
            response.warnings.append(f"AI fallback unavailable: {e}")
            return False
        if not suggestion.command.strip():
            if suggestion.explanation:
                response.explanation = suggestion.explanation
            return False
        response.found = True
        response.layer = FixLayer.LLM_FALLBACK
        response.source = ResultSource.LLM
        response.command = suggestion.command.strip()
        response.explanation = suggestion.explanation
        response.verified = False
        return True

    # ─── Feedback ────────────────────────────────────────────────────────

    def record_feedback(
        self,
        command: str,
        error_text: str,
        worked: bool,
        context_tags: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        Feed a confirmed outcome back into the Knowledge Base under the
        normalized error pattern. Returns False if nothing was recorded.
        """
        error_pattern = normalize_error_pattern(error_text)
        try:
            if worked:
                tags = ",".join(t for t in (context_tags or []) if t)
                self.brain.log_success(command, error_pattern, tags or None)
                return True
            return self.brain.log_failure(command, error_pattern)
        except sqlite3.Error as e:
            logger.warning("feedback_write_failed", command=command, error=str(e))
            return False

    # ─── Recall ──────────────────────────────────────────────────────────

    async def recall(
        self,
        query: str,
        cwd: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> RecallResponse:
        """
        Search history and Knowledge Base in parallel, boost by project
        context, dedupe by command keeping the best score, rank.
        """
        start = time.time()
        limit = limit if limit is not None else self.config.recall_limit
        context = _detect_context(cwd)
        warnings: List[str] = list(self._startup_warnings)

        history_hits, community_hits = await asyncio.gather(
            asyncio.to_thread(self._recall_history, query, context, warnings),
            asyncio.to_thread(self._recall_community, query, context, warnings),
        )
        results = merge_results(history_hits + community_hits, limit)
        return RecallResponse(
            found=bool(results),
            results=results,
            context=context,
            search_time_ms=(time.time() - start) * 1000,
            warnings=warnings,
        )

    def _recall_history(
        self, query: str, context: ProjectContext, warnings: List[str]
    ) -> List[ScoredResult]:
        try:
            scores = self.history.search_scored(query, limit=self.config.history_search_limit)
        except sqlite3.Error as e:
            logger.warning("history_search_failed", error=str(e))
            warnings.append(f"History unavailable: {e}")
            return []
        hits = []
        for s in scores:
            boost = boost_multiplier(context, s.command)
            hits.append(ScoredResult(
                command=s.command,
                source=ResultSource.HISTORY,
                score=s.combined_score * boost,
                frequency=s.frequency,
                boosted=boost > 1.0,
                metadata={"last_used": s.timestamp},
            ))
        return hits

    def _recall_community(
        self, query: str, context: ProjectContext, warnings: List[str]
    ) -> List[ScoredResult]:
        try:
            results = self.brain.search_with_scores(
                query, context.sorted_tags(), self.config.recall_limit
            )
        except sqlite3.Error as e:
            logger.warning("community_search_failed", error=str(e))
            warnings.append(f"Knowledge base unavailable: {e}")
            return []
        hits = []
        for r in results:
            boost = boost_multiplier(context, r.command)
            hits.append(ScoredResult(
                command=r.command,
                source=ResultSource.COMMUNITY,
                score=self.config.community_recall_baseline * boost,
                success_rate=r.success_rate,
                boosted=boost > 1.0,
            ))
        return hits

    # ─── History Import / Status ─────────────────────────────────────────

    def import_history(self, lines: Iterable[str], working_dir: str = ".") -> int:
        """Append a shell-hook command log. Returns the number of new rows."""
        return self.history.insert_batch(parse_command_log(lines, working_dir))

    def status(self) -> Dict[str, Any]:
        return {
            "history_count": self.history.count(),
            "brain_count": self.brain.count(),
            "rule_count": len(self.rules),
            "llm_enabled": bool(self.llm.enabled),
            "history_db": self.history.db_path,
            "brain_db": self.brain.db_path,
            "rules_path": self.config.resolved_rules_path,
        }

    def close(self):
        self.history.close()
        self.brain.close()


def merge_results(candidates: List[ScoredResult], limit: int) -> List[ScoredResult]:
    """
    Deduplicate by exact command text keeping the highest score, then
    sort best first and cut to `limit`. Ties keep the earlier candidate.
    """
    best: Dict[str, ScoredResult] = {}
    for candidate in candidates:
        current = best.get(candidate.command)
        if current is None or candidate.score > current.score:
            best[candidate.command] = candidate
    ranked = sorted(best.values(), key=lambda r: r.score, reverse=True)
    return ranked[:max(0, limit)]


def _detect_context(cwd: Optional[str]) -> ProjectContext:
    """Context for `cwd`, or for the process directory when None. Never raises."""
    try:
        return detect_project_context(cwd or os.getcwd())
    except OSError as e:
        logger.debug("context_detection_failed", cwd=cwd, error=str(e))
        return ProjectContext()


def _community_explanation(total_uses: int) -> str:
    if total_uses:
        return f"Community fix, confirmed outcome {total_uses} time(s)."
    return "Community fix with no recorded outcomes yet."
