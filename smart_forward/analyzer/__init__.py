"""Smart Forward Agent - Analyzer package."""

from .keywords import KeywordExtractor
from .models import EmailSummary, SummarizationStyle, UrgencyLevel
from .summarizer import SummarizationPipeline

__all__ = [
    "KeywordExtractor",
    "EmailSummary",
    "SummarizationStyle",
    "UrgencyLevel",
    "SummarizationPipeline",
]
