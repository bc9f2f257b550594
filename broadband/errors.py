"""
Error taxonomy.

Every error carries a machine-readable ``kind`` and the HTTP-equivalent
``status`` the request boundary reports it with.  Startup errors
(schema, storage, download, validation) are fatal; ``InvalidInput`` and
``NotFound`` are per-request.
"""

from __future__ import annotations


class BroadbandError(Exception):
    """Base class for all errors raised by this package."""

    kind: str = "internal"
    status: int = 500


class SchemaMismatch(BroadbandError):
    """A source file's columns disagree with the raw table."""

    kind = "schema_mismatch"


class StorageUnavailable(BroadbandError):
    """The analytical engine cannot be opened, or required tables are missing."""

    kind = "storage_unavailable"


class DownloadFailure(BroadbandError):
    """The prebuilt database artifact could not be fetched."""

    kind = "download_failure"


class SummaryValidationError(BroadbandError):
    """One or more aggregation invariants failed on a built summary table."""

    kind = "summary_invalid"


class InvalidInput(BroadbandError):
    """A user-supplied identifier failed the allow-list check."""

    kind = "invalid_input"
    status = 400


class NotFound(BroadbandError):
    """A well-formed hex id that has no summary row."""

    kind = "not_found"
    status = 404
