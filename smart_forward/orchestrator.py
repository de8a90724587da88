"""Smart forwarding: summarize, extract keywords, match a rule, render actions."""

import logging
import time
from typing import Mapping, Optional

from .analyzer.keywords import KeywordExtractor
from .analyzer.models import SummarizationStyle
from .analyzer.summarizer import SummarizationPipeline
from .config.models import Config
from .errors import GenerationCancelled, OrchestrationError
from .forward_log import ForwardingLog
from .generation import CachingGenerator, GeminiGenerator, OllamaGenerator, ResponseCache, TextGenerator
from .router.engine import RuleMatcher
from .router.models import ForwardingDestination, ForwardingResult, ForwardingRule
from .router.resolver import ForwardingResolver

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 150
MAX_KEYWORDS = 20


def build_generator(config: Config) -> Optional[TextGenerator]:
    """Create the configured text generator, preferring a local Ollama model."""
    generator: Optional[TextGenerator] = None
    if config.ollama_model:
        generator = OllamaGenerator(config.ollama_model, base_url=config.ollama_host or None)
    elif config.gemini_api_key:
        generator = GeminiGenerator(config.gemini_api_key, model=config.gemini_model)

    if generator is not None and config.cache.enabled:
        cache = ResponseCache(
            max_entries=config.cache.max_entries,
            ttl_seconds=config.cache.ttl_hours * 3600,
        )
        generator = CachingGenerator(generator, cache)
    return generator


class SmartForwardingOrchestrator:
    """Runs one forwarding request end to end."""

    def __init__(
        self,
        summarizer: Optional[SummarizationPipeline] = None,
        keyword_extractor: Optional[KeywordExtractor] = None,
        matcher: Optional[RuleMatcher] = None,
        resolver: Optional[ForwardingResolver] = None,
        forward_log: Optional[ForwardingLog] = None,
        summary_length: int = SUMMARY_LENGTH,
    ):
        self.keyword_extractor = keyword_extractor or KeywordExtractor()
        self.summarizer = summarizer or SummarizationPipeline(keyword_extractor=self.keyword_extractor)
        self.matcher = matcher or RuleMatcher(self.keyword_extractor)
        self.resolver = resolver or ForwardingResolver()
        self.forward_log = forward_log
        self.summary_length = summary_length

    @classmethod
    def from_config(
        cls,
        config: Config,
        use_ai: bool = True,
        forward_log: Optional[ForwardingLog] = None,
    ) -> "SmartForwardingOrchestrator":
        keyword_extractor = KeywordExtractor()
        summarizer = SummarizationPipeline(
            generator=build_generator(config) if use_ai else None,
            keyword_extractor=keyword_extractor,
            max_attempts=config.summarization.max_attempts,
            retry_backoff_sec=config.summarization.retry_backoff_sec,
        )
        return cls(
            summarizer=summarizer,
            keyword_extractor=keyword_extractor,
            forward_log=forward_log,
            summary_length=config.summarization.max_length,
        )

    def process_and_forward(
        self,
        content: str,
        rules: list[ForwardingRule],
        default_destination: Optional[ForwardingDestination] = None,
        context: Optional[Mapping[str, str]] = None,
    ) -> ForwardingResult:
        """Work out where ``content`` should go and render the messages for it."""
        started = time.monotonic()
        logger.debug("Processing content for smart forwarding: %s...", content[:100])

        try:
            result = self._process(content, rules, default_destination, context or {})
        except GenerationCancelled:
            logger.warning("Smart forwarding cancelled")
            result = ForwardingResult(summary="", success=False, message="Smart forwarding was cancelled")
        except OrchestrationError as e:
            logger.error("Smart forwarding failed: %s", e)
            result = ForwardingResult(
                summary=e.summary,
                extracted_keywords=e.keywords,
                success=False,
                message=str(e),
            )

        if self.forward_log is not None:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            try:
                self.forward_log.record(content, result, processing_time_ms=elapsed_ms)
            except (OSError, TypeError, ValueError) as e:
                logger.error("Could not write forwarding log: %s", e)
        return result

    def cancel(self) -> None:
        """Stop an in-flight model call; the request then ends unsuccessfully."""
        generator = self.summarizer.generator
        if generator is not None:
            generator.stop()

    def _process(
        self,
        content: str,
        rules: list[ForwardingRule],
        default_destination: Optional[ForwardingDestination],
        context: Mapping[str, str],
    ) -> ForwardingResult:
        summary = ""
        keywords: list[str] = []

        try:
            summary = self.summarizer.summarize(
                content,
                max_length=self.summary_length,
                style=SummarizationStyle.KEYWORDS_FOCUSED,
            )
            logger.debug("Generated summary: %s", summary)

            keywords = self.keyword_extractor.extract_keywords(f"{content} {summary}", MAX_KEYWORDS)
            logger.debug("Extracted %d keywords", len(keywords))

            matched_rule = self.matcher.match(content, summary, rules)
            destination = matched_rule.destination if matched_rule else default_destination

            if destination is None:
                logger.warning("No forwarding destination determined")
                return ForwardingResult(
                    summary=summary,
                    extracted_keywords=keywords,
                    success=False,
                    message="No forwarding destination matched or specified",
                )

            actions = self.resolver.resolve_actions(destination, summary, content, context)
            logger.info("Generated %d forwarding action(s) via %s", len(actions), destination.label)
        except GenerationCancelled:
            raise
        except Exception as e:
            raise OrchestrationError(f"Smart forwarding failed: {e}", summary, keywords) from e

        return ForwardingResult(
            summary=summary,
            extracted_keywords=keywords,
            matched_rule=matched_rule,
            forwarding_destination=destination,
            forwarding_actions=actions,
            success=True,
            message="Smart forwarding processed successfully",
        )
