"""Error taxonomy for the forwarding pipeline."""


class ForwardingError(Exception):
    """Base class for all pipeline errors."""


class TransportError(ForwardingError):
    """The text generator could not be reached or returned nothing usable."""


class ModelNotLoadedError(TransportError):
    """The text generator has no model loaded."""


class GenerationCancelled(ForwardingError):
    """A generation call was cancelled by the caller."""


class QualityRejected(ForwardingError):
    """Generated text failed the summary quality gate."""

    def __init__(self, reason: str, response: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.response = response


class ParseError(ForwardingError):
    """A forwarding rule or destination is malformed."""


class OrchestrationError(ForwardingError):
    """An unexpected failure escaped the forwarding pipeline."""

    def __init__(self, message: str, summary: str = "", keywords: list = None):
        super().__init__(message)
        self.summary = summary
        self.keywords = keywords or []
