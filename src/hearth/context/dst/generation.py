"""
SimTextGenerator - Scripted Text Generation with Fault Injection

TigerStyle: Replies come from a script (or a fixed default), never from the
network. Injected faults either raise UpstreamGenerationError or return text
with no JSON in it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hearth.bots.generation import GenerationRequest, TextGenerator
from hearth.context.dst.fault import FaultInjector, FaultType
from hearth.core.errors import UpstreamGenerationError

MALFORMED_TEXT = "Sorry, I can't produce that right now <<truncated"


@dataclass
class SimTextGenerator(TextGenerator):
    """Deterministic stand-in for the generative model."""

    _faults: FaultInjector
    default_reply: str = "Here is what I suggest."
    _script: list[str] = field(default_factory=list)
    requests: list[GenerationRequest] = field(default_factory=list, init=False)

    def script(self, *replies: str) -> SimTextGenerator:
        """Queue replies, returned in order before the default."""
        self._script.extend(replies)
        return self

    async def generate(self, request: GenerationRequest) -> str:
        assert request is not None, "request must not be None"
        self.requests.append(request)

        fault = self._faults.should_inject("generation")
        if fault == FaultType.GENERATION_FAIL:
            raise UpstreamGenerationError("simulated generation failure")
        if fault == FaultType.GENERATION_MALFORMED:
            return MALFORMED_TEXT

        if self._script:
            return self._script.pop(0)
        return self.default_reply
