"""
Tiered summarization pipeline.
- Tier 1: model summary, quality-gated, bounded retries
- Tier 2: extractive summary in the same style
- Tier 3: emergency truncation if anything above blows up
"""

import logging
import re
import time
from typing import Callable, Optional

from ..errors import GenerationCancelled, ModelNotLoadedError, QualityRejected, TransportError
from ..generation.base import TextGenerator
from .extractive import EMPTY_SUMMARY, ExtractiveSummarizer, emergency_summary
from .keywords import KeywordExtractor
from .models import EmailSummary, SummarizationStyle, UrgencyLevel
from .quality import check_quality, clean_summary_response

logger = logging.getLogger(__name__)


STYLE_INSTRUCTIONS = {
    SummarizationStyle.CONCISE: "Provide a very concise summary",
    SummarizationStyle.DETAILED: "Provide a detailed summary with key points",
    SummarizationStyle.STRUCTURED: "Provide a structured summary with bullet points",
    SummarizationStyle.KEYWORDS_FOCUSED: "Summarize focusing on important keywords and actions",
}

URGENCY_KEYWORDS = (
    "urgent", "asap", "immediately", "emergency", "critical",
    "deadline", "important", "priority", "rush", "quickly",
)

EMAIL_SUMMARY_LENGTH = 150
MAX_KEY_POINTS = 5

_KEY_POINT_SPLIT = re.compile(r"[.!?]+(?:\s+|$)|\n+")
_BULLET_PREFIX = re.compile(r"^\s*(?:[•*\-]|\d+[.)])\s*")


def build_summarization_prompt(text: str, max_length: int, style: SummarizationStyle) -> str:
    """Prompt the model with the style's phrasing and a word budget."""
    return (
        f"{STYLE_INSTRUCTIONS[style]} of the following text in approximately {max_length} words or less.\n"
        "Focus on the main ideas, key information, and actionable items.\n"
        "\n"
        "Text to summarize:\n"
        f"{text}\n"
        "\n"
        "Summary:"
    )


def extract_key_points(summary: str) -> list[str]:
    points = []
    for part in _KEY_POINT_SPLIT.split(summary):
        point = _BULLET_PREFIX.sub("", part).strip()
        if len(point) > 10:
            points.append(point)
        if len(points) == MAX_KEY_POINTS:
            break
    return points


def assess_urgency(subject: str, body: str, summary: str) -> UrgencyLevel:
    all_text = f"{subject} {body} {summary}".lower()
    hits = sum(1 for keyword in URGENCY_KEYWORDS if keyword in all_text)
    if hits >= 3:
        return UrgencyLevel.HIGH
    if hits >= 1:
        return UrgencyLevel.MEDIUM
    return UrgencyLevel.LOW


class SummarizationPipeline:
    """Summarizes text, degrading from model output to extractive to truncation."""

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        keyword_extractor: Optional[KeywordExtractor] = None,
        max_attempts: int = 2,
        retry_backoff_sec: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.generator = generator
        self.extractive = ExtractiveSummarizer(keyword_extractor)
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_sec = retry_backoff_sec
        self._sleep = sleep

    def summarize(
        self,
        text: str,
        max_length: int = 100,
        style: SummarizationStyle = SummarizationStyle.CONCISE,
    ) -> str:
        """Return a non-empty summary of ``text``; only cancellation escapes."""
        if not text or not text.strip():
            return EMPTY_SUMMARY

        logger.debug("Summarizing text of length %d (%s)", len(text), style.value)
        try:
            summary = self._try_model_summary(text, max_length, style)
            if summary:
                return summary

            logger.info("Falling back to extractive summarization")
            summary = self.extractive.summarize(text, max_length, style)
            if summary and summary.strip():
                return summary
            raise ValueError("extractive summary came back empty")
        except GenerationCancelled:
            raise
        except Exception:
            logger.exception("Summarization failed, using emergency truncation")
            return emergency_summary(text, max_length)

    def summarize_email(self, subject: str, body: str, sender: str) -> EmailSummary:
        """Summarize an email and derive key points and urgency."""
        logger.debug("Summarizing email from %s", sender)
        email_text = f"Subject: {subject}\nFrom: {sender}\nContent: {body}"
        summary = self.summarize(email_text, EMAIL_SUMMARY_LENGTH, SummarizationStyle.STRUCTURED)

        return EmailSummary(
            summary=summary,
            sender=sender,
            subject=subject,
            key_points=extract_key_points(summary),
            urgency_level=assess_urgency(subject, body, summary),
        )

    def _try_model_summary(self, text: str, max_length: int, style: SummarizationStyle) -> Optional[str]:
        if self.generator is None:
            return None

        prompt = build_summarization_prompt(text, max_length, style)

        for attempt in range(1, self.max_attempts + 1):
            try:
                summary = clean_summary_response(self.generator.generate(prompt))
                check_quality(summary, text)
                logger.debug("Model summary accepted on attempt %d", attempt)
                return summary
            except ModelNotLoadedError as e:
                logger.warning("Model not available, skipping AI summarization: %s", e)
                return None
            except QualityRejected as e:
                logger.info("Attempt %d/%d rejected: %s", attempt, self.max_attempts, e.reason)
            except TransportError as e:
                logger.warning("Attempt %d/%d failed: %s", attempt, self.max_attempts, e)

            if attempt < self.max_attempts:
                self._sleep(self.retry_backoff_sec)

        return None
