from __future__ import annotations


class QuoteError(Exception):
    """Base class for errors raised by the quote core."""


class ParseError(QuoteError):
    """The rate sheet document is missing a required section or is malformed."""


class UnsupportedContainerSize(QuoteError):
    def __init__(self, container_size: str | None, supported: tuple[str, ...] = ()):
        self.container_size = container_size
        self.supported = supported
        msg = f"No transloading rate for container size {container_size!r}"
        if supported:
            msg += f" (supported: {', '.join(supported)})"
        super().__init__(msg)


class MissingRateConfiguration(QuoteError):
    """The rate sheet has no drayage block."""
