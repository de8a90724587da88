"""Cleaning and validation of model-generated summaries."""

import re

from ..errors import QualityRejected

MIN_SUMMARY_CHARS = 10
MAX_SUMMARY_CHARS = 500
SUBJECT_ECHO_SLACK = 50
SHORT_INPUT_CHARS = 200
MAX_SHORT_INPUT_RATIO = 0.8

# Longest first so "here is a summary:" wins over "summary:"
SUMMARY_PREFIXES = (
    "sure, here is a summary:",
    "here is a summary:",
    "here's a summary:",
    "here is the summary:",
    "here's the summary:",
    "summary:",
    "tl;dr:",
)

REFUSAL_PHRASES = (
    "i cannot",
    "i can't",
    "i apologize",
    "i'm sorry",
    "i am sorry",
    "as an ai",
    "as a language model",
    "i am unable",
    "i'm unable",
)

_SUBJECT_LINE = re.compile(r"^\s*subject\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)


def clean_summary_response(response: str) -> str:
    """Strip boilerplate prefixes and bound the length of a model response."""
    text = (response or "").strip()

    lowered = text.lower()
    for prefix in SUMMARY_PREFIXES:
        if lowered.startswith(prefix):
            text = text[len(prefix):]
            break

    text = text.strip().lstrip(":").strip()
    if len(text) <= MAX_SUMMARY_CHARS:
        return text

    head = text[:MAX_SUMMARY_CHARS]
    cut = max(head.rfind("."), head.rfind("!"), head.rfind("?"))
    if cut < MAX_SUMMARY_CHARS // 2:
        return head.rstrip() + "..."
    return head[: cut + 1]


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)", text) is not None


def find_subject(text: str) -> str:
    """Return the value of the first ``Subject:`` line, or ''."""
    match = _SUBJECT_LINE.search(text or "")
    return match.group(1) if match else ""


def check_quality(summary: str, source_text: str) -> None:
    """Raise ``QualityRejected`` if ``summary`` is not a usable summary of ``source_text``."""
    if len(summary) < MIN_SUMMARY_CHARS:
        raise QualityRejected("response too short", summary)

    lowered = summary.lower()

    subject = find_subject(source_text)
    echoes_subject = subject and _contains_phrase(lowered, subject.lower())
    if echoes_subject and abs(len(summary) - len(subject)) <= SUBJECT_ECHO_SLACK:
        raise QualityRejected("response only repeats the subject line", summary)

    for phrase in REFUSAL_PHRASES:
        if phrase in lowered:
            raise QualityRejected(f"refusal phrase '{phrase}'", summary)

    source_length = len(source_text)
    if source_length < SHORT_INPUT_CHARS and len(summary) > source_length * MAX_SHORT_INPUT_RATIO:
        raise QualityRejected("response is nearly as long as the input", summary)
