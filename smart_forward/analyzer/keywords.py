"""Keyword extraction and keyword matching for forwarding rules."""

import logging
import re
from collections import Counter

logger = logging.getLogger(__name__)


STOP_WORDS = frozenset({
    "the", "is", "at", "which", "on", "and", "a", "to", "as", "are",
    "was", "will", "be", "been", "have", "has", "had", "do", "does",
    "did", "can", "could", "should", "would", "may", "might", "must",
    "this", "that", "these", "those", "i", "you", "he", "she",
    "it", "we", "they", "me", "him", "her", "us", "them", "my", "your",
    "his", "its", "our", "their", "in", "of", "for", "with",
    "by", "from", "about", "into", "through", "during", "before",
    "after", "above", "below", "up", "down", "out", "off", "over",
    "under", "again", "further", "then", "once",
})

# Action type -> trigger phrases, checked in this order
ACTION_KEYWORDS = {
    "reply": ["reply", "respond", "answer", "get back", "follow up"],
    "forward": ["forward", "share", "send to", "pass along", "distribute"],
    "urgent": ["urgent", "asap", "immediately", "emergency", "critical"],
    "support": ["help", "support", "assist", "issue", "problem", "bug"],
}

FUZZY_THRESHOLD = 0.7
POSITION_WINDOW = 100

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance over the full DP table."""
    rows = len(a) + 1
    cols = len(b) + 1
    dp = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        dp[i][0] = i
    for j in range(cols):
        dp[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,
                dp[i][j - 1] + 1,
                dp[i - 1][j - 1] + cost,
            )

    return dp[-1][-1]


def string_similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1]: (maxLen - distance) / maxLen."""
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein_distance(a, b)) / longer


class KeywordExtractor:
    """Ranks salient keywords in text and matches rule keywords against it."""

    def __init__(self, max_fuzzy_text_length: int = 20_000):
        self.max_fuzzy_text_length = max_fuzzy_text_length

    def extract_keywords(self, text: str, max_keywords: int = 10) -> list[str]:
        """Return up to ``max_keywords`` keywords, best first."""
        return [word for word, _ in self.score_keywords(text)[:max_keywords]]

    def score_keywords(self, text: str) -> list[tuple[str, float]]:
        """Return every recurring candidate with its relevance score, best first."""
        if not text or not text.strip():
            return []

        logger.debug("Extracting keywords from text of length %d", len(text))
        words = self._preprocess(text)
        candidates = self._find_candidates(words)

        scored = [
            (word, self._score(word, frequency, text))
            for word, frequency in candidates.items()
        ]
        # Lexicographic tie-break keeps rankings reproducible
        scored.sort(key=lambda item: (-item[1], item[0]))

        logger.debug("Scored %d keyword candidates", len(scored))
        return scored

    def find_keyword_matches(
        self,
        text: str,
        target_keywords: list[str],
        fuzzy_match: bool = True,
    ) -> list[str]:
        """Return the target keywords that occur in ``text``, in target order."""
        processed = (text or "").lower()
        tokens = None
        matches = []

        for keyword in target_keywords:
            target = keyword.lower()
            if target and target in processed:
                matches.append(keyword)
                continue

            if fuzzy_match and target:
                if tokens is None:
                    tokens = processed[: self.max_fuzzy_text_length].split()
                if self._has_similar_token(tokens, target):
                    matches.append(keyword)

        logger.debug("Found %d of %d keyword matches", len(matches), len(target_keywords))
        return matches

    def extract_email_actions(self, subject: str, body: str) -> list[str]:
        """Detect which follow-up actions an email asks for."""
        full_text = f"{subject} {body}".lower()
        actions = []

        for action_type, phrases in ACTION_KEYWORDS.items():
            if any(phrase in full_text for phrase in phrases):
                actions.append(action_type)

        return actions

    @staticmethod
    def _preprocess(text: str) -> list[str]:
        normalized = _NON_ALNUM.sub(" ", text.lower())
        return [
            word for word in normalized.split()
            if len(word) > 2 and word not in STOP_WORDS
        ]

    @staticmethod
    def _find_candidates(words: list[str]) -> dict[str, int]:
        frequency = Counter(words)
        frequency.update(f"{first} {second}" for first, second in zip(words, words[1:]))
        return {word: count for word, count in frequency.items() if count > 1}

    @staticmethod
    def _score(word: str, frequency: int, full_text: str) -> float:
        tf = frequency / len(full_text) * 1000
        length_bonus = 1.5 if len(word) > 5 else 1.0
        position_bonus = 1.3 if word in full_text[:POSITION_WINDOW].lower() else 1.0
        return tf * length_bonus * position_bonus

    @staticmethod
    def _has_similar_token(tokens: list[str], target: str) -> bool:
        return any(string_similarity(token, target) > FUZZY_THRESHOLD for token in tokens)
