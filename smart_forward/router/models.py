"""Router models - rules, destinations, actions and results."""

from dataclasses import asdict, dataclass, field
from typing import Optional, Union

from ..errors import ParseError

DEFAULT_SUBJECT_TEMPLATE = "Forwarded: {{original_subject}}"
DEFAULT_BODY_TEMPLATE = "{{ai_summary}}\n\n---\nOriginal content:\n{{original_content}}"
DEFAULT_MESSAGE_TEMPLATE = "📧 Summary: {{ai_summary}}"

EXTERNAL_EMAIL_USER = "external_email"
EXTERNAL_TELEGRAM_USER = "external_telegram"

MATCHING_STRATEGIES = ("exact", "fuzzy")


@dataclass(frozen=True)
class EmailDestination:
    """Send to an external email address."""
    email: str
    subject_template: str = DEFAULT_SUBJECT_TEMPLATE
    body_template: str = DEFAULT_BODY_TEMPLATE

    @property
    def label(self) -> str:
        return f"email:{self.email}"


@dataclass(frozen=True)
class TelegramDestination:
    """Send to a Telegram chat."""
    chat_id: int
    message_template: str = DEFAULT_MESSAGE_TEMPLATE

    @property
    def label(self) -> str:
        return f"telegram:{self.chat_id}"


@dataclass(frozen=True)
class UserEmailDestination:
    """Send to the email account of a registered user."""
    target_user_id: str
    subject_template: str = DEFAULT_SUBJECT_TEMPLATE
    body_template: str = DEFAULT_BODY_TEMPLATE

    @property
    def label(self) -> str:
        return f"user_email:{self.target_user_id}"


@dataclass(frozen=True)
class UserTelegramDestination:
    """Send to the Telegram account of a registered user."""
    target_user_id: str
    message_template: str = DEFAULT_MESSAGE_TEMPLATE

    @property
    def label(self) -> str:
        return f"user_telegram:{self.target_user_id}"


@dataclass(frozen=True)
class MultipleDestinations:
    """Fan out to several destinations, in order."""
    destinations: tuple = ()

    def __post_init__(self):
        # A tuple of frozen values is a tree: no cycles are possible
        object.__setattr__(self, "destinations", tuple(self.destinations))

    @property
    def label(self) -> str:
        return " + ".join(d.label for d in self.destinations)


ForwardingDestination = Union[
    EmailDestination,
    TelegramDestination,
    UserEmailDestination,
    UserTelegramDestination,
    MultipleDestinations,
]


@dataclass(frozen=True)
class ForwardingRule:
    """Forward to ``destination`` when enough keywords appear."""
    keywords: tuple
    destination: ForwardingDestination
    minimum_matches: int = 1
    matching_strategy: str = "fuzzy"
    priority: int = 0
    description: str = ""

    def __post_init__(self):
        keywords = tuple(k.strip() for k in self.keywords if k and k.strip())
        object.__setattr__(self, "keywords", keywords)

        if not keywords:
            raise ParseError(f"Rule '{self.description}' has no keywords")
        if not 1 <= self.minimum_matches <= len(keywords):
            raise ParseError(
                f"Rule '{self.description}' needs minimum_matches between 1 and "
                f"{len(keywords)}, got {self.minimum_matches}"
            )
        if self.matching_strategy not in MATCHING_STRATEGIES:
            raise ParseError(
                f"Rule '{self.description}' has unknown matching strategy '{self.matching_strategy}'"
            )
        if not self.description:
            object.__setattr__(self, "description", f"Forward if contains: {', '.join(keywords)}")

    @property
    def fuzzy(self) -> bool:
        return self.matching_strategy != "exact"


@dataclass(frozen=True)
class SendAction:
    """A rendered message the caller is expected to send."""
    platform: str  # "email" or "telegram"
    target_user_id: str
    body: str
    to: Optional[str] = None
    chat_id: Optional[int] = None
    subject: Optional[str] = None

    @property
    def text(self) -> str:
        return self.body

    @property
    def recipient(self) -> str:
        if self.to:
            return self.to
        if self.chat_id is not None:
            return str(self.chat_id)
        return self.target_user_id

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ForwardingResult:
    """Outcome of one smart forwarding run."""
    summary: str
    extracted_keywords: list[str] = field(default_factory=list)
    matched_rule: Optional[ForwardingRule] = None
    forwarding_destination: Optional[ForwardingDestination] = None
    forwarding_actions: list[SendAction] = field(default_factory=list)
    success: bool = False
    message: str = ""

    @property
    def source(self) -> str:
        """Return where the destination came from."""
        if self.matched_rule:
            return f"Rule: {self.matched_rule.description}"
        elif self.forwarding_destination:
            return "Default destination"
        return "No match"

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "extracted_keywords": list(self.extracted_keywords),
            "matched_rule": self.matched_rule.description if self.matched_rule else None,
            "destination": self.forwarding_destination.label if self.forwarding_destination else None,
            "actions": [a.to_dict() for a in self.forwarding_actions],
            "success": self.success,
            "message": self.message,
        }
