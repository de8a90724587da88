"""Smart Forward Agent - Content analysis and keyword-based message forwarding."""

__version__ = "0.1.0"

# Re-export main components for convenience
from .analyzer import EmailSummary, KeywordExtractor, SummarizationPipeline, SummarizationStyle, UrgencyLevel
from .config import Config, load_config
from .errors import (
    ForwardingError,
    GenerationCancelled,
    ModelNotLoadedError,
    OrchestrationError,
    ParseError,
    QualityRejected,
    TransportError,
)
from .forward_log import ForwardingLog
from .orchestrator import SmartForwardingOrchestrator, build_generator
from .router import (
    EmailDestination,
    ForwardingResolver,
    ForwardingResult,
    ForwardingRule,
    MultipleDestinations,
    RuleMatcher,
    SendAction,
    TelegramDestination,
    UserEmailDestination,
    UserTelegramDestination,
)

__all__ = [
    "EmailSummary",
    "KeywordExtractor",
    "SummarizationPipeline",
    "SummarizationStyle",
    "UrgencyLevel",
    "Config",
    "load_config",
    "ForwardingError",
    "GenerationCancelled",
    "ModelNotLoadedError",
    "OrchestrationError",
    "ParseError",
    "QualityRejected",
    "TransportError",
    "ForwardingLog",
    "SmartForwardingOrchestrator",
    "build_generator",
    "EmailDestination",
    "ForwardingResolver",
    "ForwardingResult",
    "ForwardingRule",
    "MultipleDestinations",
    "RuleMatcher",
    "SendAction",
    "TelegramDestination",
    "UserEmailDestination",
    "UserTelegramDestination",
]
