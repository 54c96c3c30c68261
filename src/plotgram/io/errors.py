"""
Custom exceptions for the plotgram.io module.

Purpose
- Provide IO-layer error types for dataset sources and output sinks.
- Keep plotgram.core as the source of truth for specification errors
  (see plotgram.core.errors).

Boundaries
- plotgram.io raises:
  - SourceUnavailable: a bundled name, URL, or path could not be read or parsed.
  - UnsupportedFormat: an output path's extension maps to no known format.
  - WriteError: serializing or writing an artifact failed (tmp write/fsync/rename).

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations

from plotgram.core.errors import PlotgramError

__all__ = [
    "IoError",
    "SourceUnavailable",
    "UnsupportedFormat",
    "WriteError",
]


class IoError(PlotgramError):
    """
    Base class for IO-related errors in plotgram.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from plotgram.core errors.
    """


class SourceUnavailable(IoError):
    """
    Raised when a dataset source cannot be read.

    Examples:
        - Unknown bundled dataset name
        - Missing local file
        - HTTP error or timeout on a remote download
        - Series text containing non-numeric tokens
    """


class UnsupportedFormat(IoError, ValueError):
    """
    Raised when an output path's extension is not a supported format.

    Notes:
        Raised before any file is created.
    """


class WriteError(IoError):
    """
    Raised when an artifact cannot be serialized or written.

    Notes:
        The write path is tmp file → fsync → os.replace(tmp, final). Failures at any step
        surface as WriteError (with best-effort cleanup of tmp files).
    """
