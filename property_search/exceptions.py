"""Exceptions raised by the search pipeline and its collaborators."""


class PropertySearchError(Exception):
    """Base class for property search errors."""


class ServiceError(PropertySearchError):
    """Raised when a feature, address index or geocoding service fails.

    Covers both transport failures and services answering with an
    ``{"error": {"message": ...}}`` payload.
    """

    def __init__(self, service: str, message: str):
        self.service = service
        self.message = message
        super().__init__(f"[{service}] {message}")


class UnrestrictedFilterError(PropertySearchError):
    """Raised when a filter would return the entire layer."""

    def __init__(self, where: str):
        self.where = where
        super().__init__(f"Filter is unrestricted: {where!r}")


class InvalidTransitionError(PropertySearchError):
    """Raised when the pipeline is driven through an undefined transition."""

    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"No transition from {state} on {event}")
