"""Error types raised by the collaborators of the item pipeline."""

from typing import Optional


class FilterError(Exception):
    """Base class for errors raised while filtering items.

    Args:
        message: Human readable description of the failure.
        status_code: HTTP status returned by the remote API, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            return f"{message} (status {self.status_code})"
        return message


class FetchError(FilterError):
    """Listing or fetching unread items failed. Fatal to the whole run."""


class ClassifyError(FilterError):
    """The classifier call failed. The item stays unreviewed."""


class StoreError(FilterError):
    """The review store could not be read or written."""


class RemediationError(FilterError):
    """Marking, labeling or deleting an item failed after its verdict was stored."""


class ConfigurationError(FilterError):
    """The configuration is missing values or inconsistent."""
