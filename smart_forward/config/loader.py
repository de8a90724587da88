"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from ..errors import ParseError
from ..router.models import (
    DEFAULT_BODY_TEMPLATE,
    DEFAULT_MESSAGE_TEMPLATE,
    DEFAULT_SUBJECT_TEMPLATE,
    EmailDestination,
    ForwardingDestination,
    ForwardingRule,
    MultipleDestinations,
    TelegramDestination,
    UserEmailDestination,
    UserTelegramDestination,
)
from .models import CacheConfig, Config, SummarizationConfig

logger = logging.getLogger(__name__)


def _require(data: dict, key: str, kind: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ParseError(f"{kind} destination is missing '{key}'")
    return value


def _chat_id(value: Any) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ParseError(f"Invalid Telegram chat ID: {value}")


def parse_destination(data: Any) -> ForwardingDestination:
    """Build a destination from its YAML mapping (``type`` plus fields)."""
    if not isinstance(data, dict):
        raise ParseError(f"Destination must be a mapping, got {type(data).__name__}")

    kind = str(data.get("type", "email")).strip().lower()

    if kind == "email":
        return EmailDestination(
            email=str(_require(data, "email", kind)).strip(),
            subject_template=data.get("subject", DEFAULT_SUBJECT_TEMPLATE),
            body_template=data.get("body", DEFAULT_BODY_TEMPLATE),
        )
    if kind == "telegram":
        return TelegramDestination(
            chat_id=_chat_id(_require(data, "chat_id", kind)),
            message_template=data.get("message", DEFAULT_MESSAGE_TEMPLATE),
        )
    if kind in ("user_email", "user_gmail"):
        return UserEmailDestination(
            target_user_id=str(_require(data, "user_id", kind)).strip(),
            subject_template=data.get("subject", DEFAULT_SUBJECT_TEMPLATE),
            body_template=data.get("body", DEFAULT_BODY_TEMPLATE),
        )
    if kind == "user_telegram":
        return UserTelegramDestination(
            target_user_id=str(_require(data, "user_id", kind)).strip(),
            message_template=data.get("message", DEFAULT_MESSAGE_TEMPLATE),
        )
    if kind == "multiple":
        children = data.get("destinations") or []
        if not isinstance(children, list) or not children:
            raise ParseError("multiple destination needs a non-empty 'destinations' list")
        return MultipleDestinations(tuple(parse_destination(child) for child in children))

    raise ParseError(f"Unknown forwarding type: {kind}")


def parse_forwarding_destination(destination: str, kind: str) -> Optional[ForwardingDestination]:
    """Shorthand destination from a bare address/id and its type, or None."""
    if not destination or not destination.strip():
        return None

    key = {"email": "email", "telegram": "chat_id"}.get(kind.lower(), "user_id")
    try:
        return parse_destination({"type": kind, key: destination.strip()})
    except ParseError as e:
        logger.warning("Ignoring forwarding destination '%s': %s", destination, e)
        return None


def parse_rule(data: Any) -> ForwardingRule:
    """Build a rule from its YAML mapping."""
    if not isinstance(data, dict):
        raise ParseError(f"Rule must be a mapping, got {type(data).__name__}")

    keywords = data.get("keywords") or []
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    if not isinstance(keywords, list):
        raise ParseError("Rule 'keywords' must be a list")

    try:
        minimum_matches = int(data.get("minimum_matches", 1))
        priority = int(data.get("priority", 0))
    except (TypeError, ValueError) as e:
        raise ParseError(f"Rule has a non-numeric field: {e}")

    return ForwardingRule(
        keywords=tuple(str(k) for k in keywords),
        destination=parse_destination(data.get("destination")),
        minimum_matches=minimum_matches,
        matching_strategy=str(data.get("matching_strategy", "fuzzy")).strip().lower(),
        priority=priority,
        description=str(data.get("description", "")),
    )


def parse_keyword_rules(rules_string: str, skipped: Optional[list] = None) -> list[ForwardingRule]:
    """
    Parse compact rules: "urgent,asap->support@company.com|bug,error->tech@company.com".
    Each segment becomes a fuzzy, priority-0 email rule needing one match.
    Malformed segments are logged, left out and, if ``skipped`` is given, listed there.
    """
    if not rules_string or not rules_string.strip():
        return []

    rules = []
    for segment in rules_string.split("|"):
        try:
            rules.append(_parse_keyword_segment(segment))
        except ParseError as e:
            logger.warning("Skipping keyword rule '%s': %s", segment, e)
            if skipped is not None:
                skipped.append(f"keyword rule '{segment.strip()}': {e}")
    return rules


def _parse_keyword_segment(segment: str) -> ForwardingRule:
    parts = segment.split("->")
    if len(parts) != 2:
        raise ParseError("expected keywords->email")
    return ForwardingRule(
        keywords=tuple(k.strip() for k in parts[0].split(",")),
        destination=parse_destination({"type": "email", "email": parts[1].strip()}),
    )


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file and environment."""
    load_dotenv()

    rules = []
    skipped = []
    default_destination = None
    summarization = SummarizationConfig()
    cache = CacheConfig()

    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        for index, rule_data in enumerate(yaml_config.get("rules", []) or []):
            try:
                rules.append(parse_rule(rule_data))
            except ParseError as e:
                logger.warning("Skipping rule #%d: %s", index + 1, e)
                skipped.append(f"rule #{index + 1}: {e}")

        rules.extend(parse_keyword_rules(yaml_config.get("keyword_rules", ""), skipped))

        if yaml_config.get("default_destination"):
            try:
                default_destination = parse_destination(yaml_config["default_destination"])
            except ParseError as e:
                logger.warning("Ignoring default destination: %s", e)
                skipped.append(f"default destination: {e}")

        summary_data = yaml_config.get("summarization", {}) or {}
        summarization = SummarizationConfig(
            max_length=int(summary_data.get("max_length", 150)),
            max_attempts=int(summary_data.get("max_attempts", 2)),
            retry_backoff_sec=float(summary_data.get("retry_backoff_sec", 1.0)),
        )

        cache_data = yaml_config.get("cache", {}) or {}
        cache = CacheConfig(
            enabled=bool(cache_data.get("enabled", True)),
            max_entries=int(cache_data.get("max_entries", 100)),
            ttl_hours=float(cache_data.get("ttl_hours", 24)),
        )
    else:
        logger.debug("Config file %s not found, using defaults", config_path)

    return Config(
        rules=rules,
        default_destination=default_destination,
        summarization=summarization,
        cache=cache,
        ollama_model=os.getenv("OLLAMA_MODEL", ""),
        ollama_host=os.getenv("OLLAMA_HOST", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
        log_dir=os.getenv("FORWARD_LOG_DIR", "logs"),
        skipped_rules=skipped,
    )
