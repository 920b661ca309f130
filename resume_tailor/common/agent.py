"""
Agent: a single fixed-persona LLM role.

An Agent is a system prompt plus an injected ModelAdapter. It is stateless
per call: invoke() sends [system prompt, context] and returns the reply
text, nothing is remembered between calls.

Reviewer replies are parsed here, once, into a ReviewVerdict:
    APPROVED
    CRITIQUE: <reason>
    <optional corrected payload on the following line(s)>
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from resume_tailor.common.cancellation import CancellationToken, run_cancellable
from resume_tailor.common.logger import get_logger
from resume_tailor.common.model_adapters import ModelAdapter
from resume_tailor.common.types import Message, StreamCallback

logger = get_logger(__name__)

_LEADING_DECORATION = re.compile(r"^[\s*#>_`\-]+")
_CRITIQUE_MARKER = re.compile(r"CRITIQUE\b\**\s*:?|(?i:critique)\**\s*:")
_CORRECTION_LABEL = re.compile(r"^(?:corrected|correction|fixed)[\w\s]*:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class Approved:
    """Reviewer accepted the draft."""

    approved = True


@dataclass(frozen=True)
class Critique:
    """
    Reviewer rejected the draft.

    Attributes:
        reason: First line of the critique (the headline issue)
        corrected_payload: Replacement draft supplied by the reviewer, if any
        details: Full critique text after the CRITIQUE marker
    """

    reason: str
    corrected_payload: Optional[str] = None
    details: str = ""

    approved = False

    @property
    def feedback(self) -> str:
        """Critique text to thread back into a writer prompt."""
        return self.details or self.reason


ReviewVerdict = Union[Approved, Critique]


def parse_verdict(text: str) -> ReviewVerdict:
    """
    Parse a reviewer reply into a ReviewVerdict.

    A reply whose first meaningful token is APPROVED is an approval. A reply
    containing CRITIQUE is a critique whose first line is the reason and whose
    remaining lines (if any) are the corrected payload. Any other reply is a
    critique carrying the whole reply as its reason, so a non-cooperative
    reviewer can never approve by accident.

    Example:
        >>> parse_verdict("APPROVED")
        Approved()
        >>> parse_verdict("CRITIQUE: too long\\nStaff Engineer").corrected_payload
        'Staff Engineer'
    """
    stripped = (text or "").strip()
    head = _LEADING_DECORATION.sub("", stripped)

    if head.upper().startswith("APPROVED"):
        return Approved()

    marker = _CRITIQUE_MARKER.search(stripped)
    if marker is None:
        if re.search(r"\bAPPROVED\b", stripped) and not re.search(r"\bNOT\s+APPROVED\b", stripped, re.IGNORECASE):
            return Approved()
        return Critique(reason=stripped, details=stripped)

    body = stripped[marker.end():].strip()
    lines = [line.strip() for line in body.splitlines()]
    reason = lines[0].strip("* ") if lines else ""
    rest = [line for line in lines[1:] if line]

    corrected = None
    if rest:
        rest[0] = _CORRECTION_LABEL.sub("", rest[0])
        corrected = "\n".join(line for line in rest if line).strip() or None

    return Critique(reason=reason, corrected_payload=corrected, details=body)


class Agent:
    """
    A fixed-persona LLM role bound to one ModelAdapter.

    Args:
        name: Role name used in logs (e.g. "summary_writer")
        system_prompt: The persona's system prompt
        adapter: Provider adapter chosen once per run
        temperature: Sampling temperature for this role
    """

    def __init__(
        self,
        name: str,
        system_prompt: str,
        adapter: ModelAdapter,
        temperature: float = 0.7,
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.adapter = adapter
        self.temperature = temperature

    async def invoke(
        self,
        context: str,
        on_event: Optional[StreamCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Run the agent once on a textual context.

        When on_event is given the call streams and on_event fires once per
        chunk plus once with done=True.

        Raises:
            TransportError: On provider failure
            PipelineCancelled: If cancel_token fires before or during the call
        """
        messages = [
            Message(role="system", content=self.system_prompt),
            Message(role="user", content=context),
        ]
        logger.debug(f"Agent {self.name}: invoking ({len(context)} chars of context)")

        if on_event is not None:
            call = self.adapter.stream(messages, self.temperature, on_event)
        else:
            call = self.adapter.complete(messages, self.temperature)

        text = await run_cancellable(call, cancel_token)
        logger.debug(f"Agent {self.name}: received {len(text)} chars")
        return text.strip()

    async def review(
        self,
        context: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ReviewVerdict:
        """Invoke the agent as a reviewer and parse its verdict."""
        verdict = parse_verdict(await self.invoke(context, cancel_token=cancel_token))
        logger.debug(f"Agent {self.name}: verdict={'APPROVED' if verdict.approved else 'CRITIQUE'}")
        return verdict
