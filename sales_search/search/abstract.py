"""
Abstract search backend interfaces.

Concrete backends (structured store, delimited-file scan) implement the
SearchBackend protocol and return a SearchPage so the selector can route a
query to either without caring which one answers.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sales_search.domain.models import SearchCriteria, SearchPage


@runtime_checkable
class SearchBackend(Protocol):
    """
    Common interface all search backends must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier, reported on every SearchPage.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    def search(self, criteria: SearchCriteria) -> SearchPage:
        """
        Answer one query.

        Parameters
        ----------
        criteria : SearchCriteria
            Normalized filters, sort and paging for the query.

        Returns
        -------
        SearchPage
            The requested page in final order plus the full match count.
        """
        ...


__all__ = [
    "SearchBackend",
]
