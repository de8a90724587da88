"""Configuration models."""

from dataclasses import dataclass, field
from typing import Optional

from ..router.models import ForwardingDestination


@dataclass
class SummarizationConfig:
    """Summary length and model retry policy."""
    max_length: int = 150
    max_attempts: int = 2
    retry_backoff_sec: float = 1.0


@dataclass
class CacheConfig:
    """Response cache in front of the text generator."""
    enabled: bool = True
    max_entries: int = 100
    ttl_hours: float = 24.0


@dataclass
class Config:
    """Main configuration container."""
    rules: list  # ForwardingRule objects, in configured order
    default_destination: Optional[ForwardingDestination] = None
    summarization: SummarizationConfig = field(default_factory=SummarizationConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    ollama_model: str = ""
    ollama_host: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    log_dir: str = "logs"
    skipped_rules: list = field(default_factory=list)  # error messages of rejected rules
