"""Forwarding rule matching engine."""

import logging
from typing import Optional

from ..analyzer.keywords import KeywordExtractor
from .models import ForwardingRule

logger = logging.getLogger(__name__)


class RuleMatcher:
    """Picks the forwarding rule for a piece of content.

    Rules are tried in descending priority and the first one that reaches its
    ``minimum_matches`` wins, even if a later rule would match more keywords.
    """

    def __init__(self, keyword_extractor: Optional[KeywordExtractor] = None):
        self.keyword_extractor = keyword_extractor or KeywordExtractor()

    def match(self, content: str, summary: str, rules: list[ForwardingRule]) -> Optional[ForwardingRule]:
        """Return the first matching rule by priority, or None."""
        full_text = f"{content} {summary}"

        # sorted() is stable, so equal priorities keep their configured order
        for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
            logger.debug("Checking rule: %s", rule.description)
            match_count = self.count_matches(full_text, rule)

            if match_count >= rule.minimum_matches:
                logger.info(
                    "Rule matched: %s (%d/%d keywords)",
                    rule.description, match_count, len(rule.keywords),
                )
                return rule

        logger.debug("No rules matched")
        return None

    def count_matches(self, text: str, rule: ForwardingRule) -> int:
        """Number of the rule's keywords present in ``text``."""
        count = 0
        for keyword in rule.keywords:
            if self.keyword_extractor.find_keyword_matches(text, [keyword], fuzzy_match=rule.fuzzy):
                count += 1
        return count
