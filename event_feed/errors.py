"""
Exception types raised by the pipeline.

HarvestError and ConfigError abort a run. CompletionError only fails the
batch whose completion call raised it.
"""


class EventFeedError(Exception):
    """Base class for pipeline errors."""


class ConfigError(EventFeedError):
    """Missing credential or unsupported setting."""


class HarvestError(EventFeedError):
    """Browser launch or page navigation failed."""


class CompletionError(EventFeedError):
    """The text-completion service call failed for one batch."""

    def __init__(self, message: str, provider: str = "", status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429
