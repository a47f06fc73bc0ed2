"""
Bot Base Class

Every bot runs the same turn:
1. Extract signals from the inbound message
2. Read the user's context, derive a partial update, merge and persist
   (ContextService.modify, serialized per user)
3. Build a prompt from the updated context and call the text generator
4. Post-process the reply and echo the relevant slice of context

Context failures are fail-open (the default document is used). Generation
failures are fail-closed unless a bot defines a fallback.
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar

from hearth.bots.generation import GenerationRequest, TextGenerator
from hearth.bots.suggestions import SuggestionAnnotator
from hearth.context.rules import format_timestamp, parse_timestamp
from hearth.context.service import ContextService, Derive, ModifyResult
from hearth.context.signals import TextSignalExtractor
from hearth.core.errors import UpstreamGenerationError

logger = logging.getLogger(__name__)


class BaseBot:
    """Shared plumbing for the chat bots."""

    name: ClassVar[str] = "bot"
    # botInteractions field stamped on every turn
    interaction_field: ClassVar[str] = ""
    # error label for a failed generation call
    failure_error: ClassVar[str] = "Error processing request"

    def __init__(
        self,
        service: ContextService,
        generator: TextGenerator,
        extractor: TextSignalExtractor | None = None,
        annotator: SuggestionAnnotator | None = None,
        currency: str = "₹",
    ) -> None:
        self._service = service
        self._generator = generator
        self._extractor = extractor or TextSignalExtractor()
        self._annotator = annotator
        self._currency = currency

    def now(self) -> datetime:
        return self._service.store.now()

    def interaction_stamp(self, now: datetime) -> dict[str, Any]:
        """Partial update recording that this bot handled a turn."""
        if not self.interaction_field:
            return {}
        return {"botInteractions": {self.interaction_field: format_timestamp(now)}}

    async def update_context(self, user_id: str, derive: Derive) -> ModifyResult:
        """Run one read-derive-write cycle for the user."""
        result = await self._service.modify(user_id, derive)
        if result.update:
            logger.debug(f"{self.name}: applied {sorted(result.update)} for {user_id}")
        return result

    async def generate(self, request: GenerationRequest) -> str:
        """Call the generator, relabelling failures with this bot's error."""
        try:
            return await self._generator.generate(request)
        except UpstreamGenerationError as e:
            logger.error(f"{self.name}: generation failed: {e}")
            raise UpstreamGenerationError(e.details or str(e), error=self.failure_error) from e


def display_date(value: Any) -> str:
    """Render a stored timestamp as a short date, or "N/A"."""
    parsed = parse_timestamp(value)
    return parsed.strftime("%d %b %Y") if parsed else "N/A"


def joined(values: Any, empty: str) -> str:
    """Comma-join a list for a prompt line, ``empty`` when there is nothing."""
    items = [str(v) for v in (values or [])]
    return ", ".join(items) if items else empty


def sub_tree(context: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return context.get(key) or {}
