"""
Aethr — Fix Adapter Protocol

Defines what Aethr needs from a remote model, if one is configured.
Uses structural typing (Protocol): any object with these members works.

Without an adapter: the fix pipeline stops after the rule and community
layers. Fully functional, zero API cost.

With an adapter: errors nothing local recognises are sent to the model
as a last resort, and its answer is marked unverified.
"""
from typing import runtime_checkable
from typing import Protocol

from .types import FixSuggestion, ProjectContext


@runtime_checkable
class FixAdapter(Protocol):
    """
    Protocol for a model-backed fix source.

    - enabled: False means the fallback layer is skipped entirely
    - get_fix(): ask the model for one command plus a short explanation

    get_fix is async to support non-blocking API calls. Implementations
    raise LLMTransportError on network, auth or non-2xx failures.
    """

    enabled: bool

    async def get_fix(
        self,
        error: str,
        context: ProjectContext,
    ) -> FixSuggestion:
        """
        Suggest a fix for an error.

        Args:
            error: Raw error text as the user saw it
            context: Tags detected in the current project

        Returns:
            FixSuggestion; an empty command means the model had nothing.
        """
        ...


class NullFixAdapter:
    """The absent model. Never called by the orchestrator since enabled is False."""

    enabled = False

    async def get_fix(self, error: str, context: ProjectContext) -> FixSuggestion:
        return FixSuggestion()
