"""Turns a forwarding destination into rendered send actions."""

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional

from .models import (
    EXTERNAL_EMAIL_USER,
    EXTERNAL_TELEGRAM_USER,
    EmailDestination,
    ForwardingDestination,
    MultipleDestinations,
    SendAction,
    TelegramDestination,
    UserEmailDestination,
    UserTelegramDestination,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def render_template(
    template: str,
    summary: str,
    original_content: str,
    context: Mapping[str, str],
    now: Optional[datetime] = None,
) -> str:
    """Fill ``{{placeholders}}`` in a fixed order.

    Context values are applied before the named fallbacks, so a caller's
    ``email_subject`` always beats "No Subject". Unknown placeholders stay as
    they are.
    """
    result = template
    result = result.replace("{{ai_summary}}", summary)
    result = result.replace("{{summary}}", summary)
    result = result.replace("{{original_content}}", original_content)

    for key, value in context.items():
        result = result.replace("{{" + key + "}}", str(value))

    fallbacks = (
        ("original_subject", context.get("email_subject", "No Subject")),
        ("email_subject", "No Subject"),
        ("email_from", "Unknown Sender"),
        ("email_body", original_content),
        ("telegram_chat_id", ""),
        ("telegram_user", "Unknown User"),
        ("telegram_message", original_content),
    )
    for key, default in fallbacks:
        result = result.replace("{{" + key + "}}", default)

    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return result.replace("{{timestamp}}", stamp)


class ForwardingResolver:
    """Expands destinations, including nested fan-outs, into send actions."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def resolve_actions(
        self,
        destination: ForwardingDestination,
        summary: str,
        original_content: str,
        context: Optional[Mapping[str, str]] = None,
    ) -> list[SendAction]:
        """Render one action per leaf destination, depth-first, left to right."""
        context = context or {}
        actions = self._resolve(destination, summary, original_content, context)
        logger.debug("Resolved %d forwarding action(s) for %s", len(actions), destination.label)
        return actions

    def _resolve(
        self,
        destination: ForwardingDestination,
        summary: str,
        original_content: str,
        context: Mapping[str, str],
    ) -> list[SendAction]:
        def render(template: str) -> str:
            return render_template(template, summary, original_content, context, now=self._clock())

        if isinstance(destination, EmailDestination):
            return [SendAction(
                platform="email",
                target_user_id=EXTERNAL_EMAIL_USER,
                to=destination.email,
                subject=render(destination.subject_template),
                body=render(destination.body_template),
            )]

        if isinstance(destination, TelegramDestination):
            return [SendAction(
                platform="telegram",
                target_user_id=EXTERNAL_TELEGRAM_USER,
                chat_id=destination.chat_id,
                body=render(destination.message_template),
            )]

        if isinstance(destination, UserEmailDestination):
            return [SendAction(
                platform="email",
                target_user_id=destination.target_user_id,
                subject=render(destination.subject_template),
                body=render(destination.body_template),
            )]

        if isinstance(destination, UserTelegramDestination):
            return [SendAction(
                platform="telegram",
                target_user_id=destination.target_user_id,
                body=render(destination.message_template),
            )]

        if isinstance(destination, MultipleDestinations):
            actions = []
            for child in destination.destinations:
                actions.extend(self._resolve(child, summary, original_content, context))
            return actions

        raise TypeError(f"Unsupported forwarding destination: {type(destination).__name__}")
