"""
Error taxonomy for the sales search service.

Every failure the search layer can surface derives from `SalesSearchError` so
callers can tell "ran, zero matches" apart from "could not run". Nothing in
this package retries any of these automatically.
"""

from __future__ import annotations

from typing import Optional


class SalesSearchError(Exception):
    """Base class for all search-layer failures."""


class CriteriaValidationError(SalesSearchError, ValueError):
    """Caller input could not be normalized into SearchCriteria."""


class SourceUnavailableError(SalesSearchError):
    """The fallback row source could not be opened (local or remote)."""


class RowParseError(SalesSearchError):
    """
    A source row could not be turned into a SaleRecord.

    Raised for rows whose date is blank or malformed; it aborts the read of
    the remaining source rather than silently truncating it.
    """

    def __init__(self, message: str, row_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.row_number = row_number


class StoreQueryError(SalesSearchError):
    """The structured store failed to answer a count or page query."""


__all__ = [
    "SalesSearchError",
    "CriteriaValidationError",
    "SourceUnavailableError",
    "RowParseError",
    "StoreQueryError",
]
