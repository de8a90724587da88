"""Analysis result models."""

from dataclasses import dataclass, field
from enum import Enum


class SummarizationStyle(Enum):
    """How a summary is phrased and formatted."""
    CONCISE = "concise"
    DETAILED = "detailed"
    STRUCTURED = "structured"
    KEYWORDS_FOCUSED = "keywords_focused"

    @classmethod
    def parse(cls, value: str) -> "SummarizationStyle":
        """Look up a style by value or name, e.g. ``keywords-focused``."""
        key = value.strip().lower().replace("-", "_")
        for style in cls:
            if style.value == key:
                return style
        raise ValueError(f"Unknown summarization style: {value}")


class UrgencyLevel(Enum):
    """Urgency levels for prioritization."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class EmailSummary:
    """Structured email summary with metadata."""
    summary: str
    sender: str
    subject: str
    key_points: list[str] = field(default_factory=list)
    urgency_level: UrgencyLevel = UrgencyLevel.LOW


@dataclass(frozen=True)
class ParsedEmail:
    """Header fields and body pulled out of email-shaped text."""
    subject: str
    sender: str
    body: str
