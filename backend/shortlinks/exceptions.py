"""Errors raised by the link engine.

Each error carries an ``error_code`` and the HTTP ``status_code`` the API
layer answers with when the error reaches it.
"""


class ShortLinksError(Exception):
    """Base exception for all application-specific errors."""

    error_code = "app:short_links_error"
    status_code = 500


class InvalidURL(ShortLinksError):
    """Raised when the URL to shorten is not an absolute HTTP(S) URL."""

    error_code = "shorten:invalid_url"
    status_code = 400


class InvalidLabel(ShortLinksError):
    """Raised when a custom label is not a usable path segment."""

    error_code = "shorten:invalid_label"
    status_code = 400


class LabelTaken(ShortLinksError):
    """Raised when a custom label is already used by another link."""

    error_code = "shorten:label_taken"
    status_code = 409


class LabelForbidden(ShortLinksError):
    """Raised when a custom label is on the profanity list."""

    error_code = "shorten:label_forbidden"
    status_code = 400


class AllocationExhausted(ShortLinksError):
    """Raised when no acceptable identifier was found within the retry cap."""

    error_code = "shorten:allocation_exhausted"
    status_code = 500


class LinkNotFound(ShortLinksError):
    """Raised when no link has the requested identifier."""

    error_code = "links:not_found"
    status_code = 404


class GeoLookupFailed(ShortLinksError):
    """Raised when an IP address cannot be resolved to a country.

    Covers network errors, timeouts, malformed responses and missing fields.
    Never surfaced to visitors.
    """

    error_code = "geo:lookup_failed"
    status_code = 502


class StorageError(ShortLinksError):
    """Raised when the database fails (connection loss, constraint violation)."""

    error_code = "storage:error"
    status_code = 500
