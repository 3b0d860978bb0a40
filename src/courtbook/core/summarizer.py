"""Natural-language summaries of court availability.

ClaudeSummarizer asks Claude for a conversational answer. fallback_summary
is the templated answer used when no summarizer is configured or the call
fails.
"""

from __future__ import annotations

import asyncio
import logging

import anthropic

from courtbook.core.protocols import AvailabilityResult
from courtbook.utils.exceptions import SummaryError

logger = logging.getLogger(__name__)


class ClaudeSummarizer:
    """Claude-backed availability summarizer.

    Note: This summarizer uses the synchronous Anthropic client wrapped in
    asyncio.to_thread() so the event loop keeps serving other tool calls
    while the summary is generated.

    Example:
        >>> summarizer = ClaudeSummarizer(model="claude-3-5-haiku-latest")
        >>> await summarizer.summarize(result)
        'Good news! DuPont has two open slots tomorrow...'
    """

    SYSTEM_PROMPT = (
        "You are a helpful tennis court booking assistant. Convert tennis court "
        "availability data into a friendly, conversational response. Be concise "
        "but informative."
    )

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-3-5-haiku-latest",
        max_tokens: int = 300,
    ) -> None:
        """Initialize the ClaudeSummarizer.

        Args:
            api_key: Optional Anthropic API key. If not provided, will use
                the ANTHROPIC_API_KEY environment variable.
            model: Claude model used for summaries.
            max_tokens: Upper bound on summary length.
        """
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def summarize(self, facts: AvailabilityResult) -> str:
        """Summarize availability facts.

        Raises:
            SummaryError: If the Claude API call fails or returns no text.
        """
        return await asyncio.to_thread(self._summarize_sync, facts)

    def _summarize_sync(self, facts: AvailabilityResult) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self.SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(facts)}],
            )
        except anthropic.APIError as e:
            raise SummaryError(f"Claude API error: {e}") from e

        text = "".join(
            block.text for block in response.content if hasattr(block, "text")
        ).strip()
        if not text:
            raise SummaryError("Claude response did not contain text content")
        return text


def build_prompt(facts: AvailabilityResult) -> str:
    """Render availability facts as the summarizer's user message."""
    times = ", ".join(facts.available_times) or "None available"
    lines = [
        "Please summarize this tennis court availability data in a natural, "
        "friendly way:",
        "",
        f"Court: {facts.court}",
        f"Date: {facts.date}",
        f"Available times: {times}",
        f"Requested time: {facts.requested_time or 'None specified'}",
        f"Requested time available: {facts.requested_time_available}",
    ]
    if facts.error:
        lines.append(f"Error occurred: {facts.error}")
    lines += ["", "Make it conversational and helpful."]
    return "\n".join(lines)


def fallback_summary(facts: AvailabilityResult) -> str:
    """Templated summary used when no generated summary is available."""
    if facts.error:
        return (
            f"Sorry, I couldn't check availability for {facts.court} on "
            f"{facts.date}. Error: {facts.error}"
        )
    if facts.total_slots == 0:
        return f"No time slots are available at {facts.court} on {facts.date}."

    text = (
        f"{facts.court} has {facts.total_slots} available time slots on "
        f"{facts.date}: {', '.join(facts.available_times)}."
    )
    if facts.requested_time and facts.requested_time_available:
        text += f" Your requested time of {facts.requested_time} is available!"
    elif facts.requested_time:
        text += (
            f" Unfortunately, your requested time of {facts.requested_time} "
            "is not available."
        )
    return text
