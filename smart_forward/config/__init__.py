"""Smart Forward Agent - Configuration package."""

from .loader import load_config, parse_destination, parse_forwarding_destination, parse_keyword_rules, parse_rule
from .models import CacheConfig, Config, SummarizationConfig

__all__ = [
    "load_config",
    "parse_destination",
    "parse_forwarding_destination",
    "parse_keyword_rules",
    "parse_rule",
    "CacheConfig",
    "Config",
    "SummarizationConfig",
]
