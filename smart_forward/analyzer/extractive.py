"""Rule-based summaries used when the model is unavailable.

Two entry points: ``ExtractiveSummarizer`` picks and formats the best
sentences, ``emergency_summary`` just truncates on a sentence boundary.
"""

import logging
import re
from typing import Optional

from .keywords import KeywordExtractor
from .models import ParsedEmail, SummarizationStyle

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "No content available for summarization."

IMPORTANT_KEYWORDS = (
    "important", "urgent", "key", "main", "primary", "essential",
    "required", "request", "please", "action", "needed", "asap",
    "meeting", "deadline", "project", "update", "report",
)

EMAIL_KEYWORDS = (
    "subject:", "from:", "to:", "cc:", "bcc:", "dear", "hello", "hi",
    "regards", "sincerely", "thank", "thanks",
)

ACTION_HINTS = (
    "please", "need", "required", "must", "deadline", "asap", "by ",
    "review", "confirm", "reply", "send", "submit", "approve", "action",
)

MIN_SENTENCE_CHARS = 10
TARGET_FILL = 0.8
MAX_BULLETS = 3

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_HEADER_LINE = re.compile(r"^\s*(subject|from|to|cc|bcc|date)\s*:\s*(.*)$", re.IGNORECASE)
_BODY_MARKER = re.compile(r"^\s*(content|body)\s*:\s*(.*)$", re.IGNORECASE)
_EMAIL_SHAPE = re.compile(r"^\s*(subject|from)\s*:", re.IGNORECASE | re.MULTILINE)


def emergency_summary(text: str, max_length: int) -> str:
    """Truncate to ``max_length`` words, ending on a sentence if one is close."""
    if not text or not text.strip():
        return EMPTY_SUMMARY

    words = text.split()
    if len(words) <= max_length:
        return text.strip()

    truncated = " ".join(words[:max_length])
    last_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_end > len(truncated) / 2:
        return truncated[: last_end + 1].strip()
    return f"{truncated}..."


def is_email_shaped(text: str) -> bool:
    return bool(_EMAIL_SHAPE.search(text or ""))


def parse_email(text: str) -> ParsedEmail:
    """Pull ``Subject:``/``From:`` headers and the body out of email-like text."""
    subject = ""
    sender = ""
    body_lines: list[str] = []
    in_body = False

    for line in text.splitlines():
        if in_body:
            body_lines.append(line)
            continue

        marker = _BODY_MARKER.match(line)
        if marker:
            in_body = True
            body_lines.append(marker.group(2))
            continue

        header = _HEADER_LINE.match(line)
        if header:
            name = header.group(1).lower()
            if name == "subject" and not subject:
                subject = header.group(2).strip()
            elif name == "from" and not sender:
                sender = header.group(2).strip()
            continue

        if line.strip():
            in_body = True
            body_lines.append(line)

    return ParsedEmail(subject=subject, sender=sender, body="\n".join(body_lines).strip())


def split_sentences(text: str) -> list[str]:
    sentences = (" ".join(part.split()) for part in _SENTENCE_SPLIT.split(text or ""))
    return [s for s in sentences if len(s) > MIN_SENTENCE_CHARS]


def score_sentence(sentence: str, position: int, total: int) -> float:
    """Weight a sentence by where it sits, how long it is and what it mentions."""
    if position == 0:
        position_weight = 2.0
    elif position == total - 1:
        position_weight = 1.5
    elif position < total * 0.3:
        position_weight = 1.2
    else:
        position_weight = 1.0

    word_count = len(sentence.split())
    if 8 <= word_count <= 25:
        length_weight = 1.5
    elif 5 <= word_count <= 30:
        length_weight = 1.0
    else:
        length_weight = 0.5

    lowered = sentence.lower()
    bonus = 0.5 * sum(1 for kw in IMPORTANT_KEYWORDS if kw in lowered)
    bonus += 0.3 * sum(1 for kw in EMAIL_KEYWORDS if kw in lowered)

    return position_weight * length_weight * (1.0 + bonus)


class ExtractiveSummarizer:
    """Sentence-scoring summarizer with the same styles as the model prompts."""

    def __init__(self, keyword_extractor: Optional[KeywordExtractor] = None):
        self.keyword_extractor = keyword_extractor or KeywordExtractor()

    def summarize(self, text: str, max_length: int, style: SummarizationStyle) -> str:
        if is_email_shaped(text):
            email = parse_email(text)
            logger.debug("Extractive summary of email '%s'", email.subject)
            sentences = self.rank_sentences(email.body or text, max_length)
            if not sentences and not email.subject:
                return emergency_summary(text, max_length)
            return self._format_email(email, sentences, style)

        sentences = self.rank_sentences(text, max_length)
        if not sentences:
            return emergency_summary(text, max_length)
        return self._format_generic(text, sentences, style)

    def rank_sentences(self, text: str, max_length: int) -> list[str]:
        """Greedy pick of the best sentences, best first, within ``max_length`` words."""
        sentences = split_sentences(text)
        total = len(sentences)
        scored = sorted(
            ((score_sentence(s, i, total), i, s) for i, s in enumerate(sentences)),
            key=lambda item: (-item[0], item[1]),
        )

        selected = []
        word_total = 0
        for _, _, sentence in scored:
            words = len(sentence.split())
            if word_total + words <= max_length:
                selected.append(sentence)
                word_total += words
            if word_total >= max_length * TARGET_FILL:
                break

        return selected

    def _format_generic(self, text: str, sentences: list[str], style: SummarizationStyle) -> str:
        if style == SummarizationStyle.STRUCTURED:
            return "\n".join(f"• {s}" for s in sentences[:MAX_BULLETS])
        if style == SummarizationStyle.DETAILED:
            return "\n".join(f"{i}. {s}." for i, s in enumerate(sentences, start=1))
        if style == SummarizationStyle.KEYWORDS_FOCUSED:
            return self._format_keywords_focused(text, sentences)
        return f"{sentences[0]}."

    def _format_email(self, email: ParsedEmail, sentences: list[str], style: SummarizationStyle) -> str:
        if style == SummarizationStyle.STRUCTURED:
            lines = []
            if email.sender:
                lines.append(f"• From: {email.sender}")
            if email.subject:
                lines.append(f"• Subject: {email.subject}")
            lines.extend(f"• Key point: {s}." for s in sentences[:MAX_BULLETS])
            return "\n".join(lines)

        if style == SummarizationStyle.DETAILED:
            header = f"Email from {email.sender or 'unknown sender'}"
            if email.subject:
                header += f" about {email.subject}"
            numbered = [f"{i}. {s}." for i, s in enumerate(sentences, start=1)]
            return "\n".join([header + ":"] + numbered)

        if style == SummarizationStyle.KEYWORDS_FOCUSED:
            source = f"{email.subject}\n{email.body}"
            return self._format_keywords_focused(source, sentences or [email.subject])

        if not sentences:
            return email.subject
        return f"{sentences[0]}."

    def _format_keywords_focused(self, text: str, sentences: list[str]) -> str:
        lines = []
        keywords = self.keyword_extractor.extract_keywords(text, max_keywords=5)
        if keywords:
            lines.append(f"Keywords: {', '.join(keywords)}")

        actions = [s for s in sentences if any(hint in s.lower() for hint in ACTION_HINTS)]
        if actions:
            lines.extend(f"Action: {s}." for s in actions[:MAX_BULLETS])
        else:
            lines.append(f"{sentences[0]}.")
        return "\n".join(lines)
