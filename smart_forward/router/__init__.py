"""Smart Forward Agent - Router package."""

from .engine import RuleMatcher
from .models import (
    EmailDestination,
    ForwardingDestination,
    ForwardingResult,
    ForwardingRule,
    MultipleDestinations,
    SendAction,
    TelegramDestination,
    UserEmailDestination,
    UserTelegramDestination,
)
from .resolver import ForwardingResolver, render_template

__all__ = [
    "RuleMatcher",
    "ForwardingResolver",
    "render_template",
    "EmailDestination",
    "ForwardingDestination",
    "ForwardingResult",
    "ForwardingRule",
    "MultipleDestinations",
    "SendAction",
    "TelegramDestination",
    "UserEmailDestination",
    "UserTelegramDestination",
]
