"""
Summarization provider: turns a window's records into a Markdown summary.

Opaque to the rest of the engine. Any provider failure (network, quota,
content policy, empty completion) surfaces as ExternalCallFailedError and is
never retried here; the caller decides whether to re-invoke.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from lifelog.core.config import settings
from lifelog.core.errors import ExternalCallFailedError
from lifelog.models.period_summary import SummaryKind
from lifelog.services.records import SourceRecord

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openai"


class Summarizer(Protocol):
    async def summarize(
        self,
        kind: SummaryKind,
        window_description: str,
        records: list[SourceRecord],
    ) -> str: ...


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_WORK_SYSTEM_PROMPT = """You are a professional work-log writer. From the list of tasks the user \
completed during the given {period}, write a {period}ly work report.

Requirements:
1. Organize the completed work systematically.
2. Summarize key achievements and core content.
3. Keep it professional but easy to read, using Markdown.
4. Point out patterns and characteristics of the work in this {period}.
5. Suggest concrete, actionable improvements (time management, prioritization, efficiency).

Format:
- Title: {period_title} work report
- Summary of main work
- Overall review and insights
- Improvements"""

_DIARY_SYSTEM_PROMPT = """You are a warm, perceptive journaling companion. From the user's diary \
entries for the given {period}, write a {period}ly reflection.

Requirements:
1. Summarize the main events and feelings of the {period}.
2. Notice recurring themes, moods and changes over time.
3. Stay faithful to what the user wrote; do not invent events.
4. Use Markdown and keep a kind, encouraging tone.
5. End with one or two gentle questions for the user to reflect on.

Format:
- Title: {period_title} reflection
- Highlights
- Themes and emotions
- Looking ahead"""


def _system_prompt(kind: SummaryKind) -> str:
    template = _WORK_SYSTEM_PROMPT if kind.source == "work" else _DIARY_SYSTEM_PROMPT
    return template.format(period=kind.period.removesuffix("ly"), period_title=kind.period.title())


def _user_prompt(kind: SummaryKind, window_description: str, records: list[SourceRecord]) -> str:
    if kind.source == "work":
        lines = [
            f"- {r.day} " + (f"[{r.category}] " if r.category else "") + r.text
            for r in records
        ]
        return (
            f"Tasks completed during {window_description}:\n\n"
            + "\n".join(lines)
            + f"\n\n{len(records)} tasks completed in total."
        )
    blocks = [f"### {r.day}\n{r.text}" for r in records]
    return (
        f"Diary entries for {window_description} ({len(records)} entries):\n\n"
        + "\n\n".join(blocks)
    )


# ---------------------------------------------------------------------------
# OpenAI implementation
# ---------------------------------------------------------------------------

class OpenAISummarizer:
    def __init__(
        self,
        api_key: str | None = settings.OPENAI_API_KEY,
        base_url: str = settings.OPENAI_BASE_URL,
        model: str = settings.SUMMARY_MODEL,
        max_tokens: int = settings.SUMMARY_MAX_TOKENS,
        temperature: float = settings.SUMMARY_TEMPERATURE,
        timeout: float = settings.SUMMARY_TIMEOUT_SECONDS,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = (
            AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
            if api_key
            else None
        )

    async def summarize(
        self,
        kind: SummaryKind,
        window_description: str,
        records: list[SourceRecord],
    ) -> str:
        if self.client is None:
            raise ExternalCallFailedError("OPENAI_API_KEY is not configured.", provider=PROVIDER_NAME)

        logger.info(
            "Summarizing %s for %s (%d records, model=%s)",
            kind.value, window_description, len(records), self.model,
        )
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": _system_prompt(kind)},
                    {"role": "user", "content": _user_prompt(kind, window_description, records)},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            logger.warning("Summarization call failed for %s %s: %s", kind.value, window_description, exc)
            raise ExternalCallFailedError(f"Summary generation failed: {exc}", provider=PROVIDER_NAME) from exc

        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            raise ExternalCallFailedError("Summary provider returned an empty response.", provider=PROVIDER_NAME)
        return content


@lru_cache
def get_summarizer() -> Summarizer:
    """FastAPI dependency. Overridden in tests with a fake."""
    return OpenAISummarizer()
