"""Errors raised by the search subsystem.

Transport, index and decode errors abort a search and reach the caller.
Semantic parser errors never leave ``tripsearch.nlp.parser``.
"""


class SearchError(Exception):
    """Base class for search failures surfaced to callers."""


class SearchTransportError(SearchError):
    """The index could not be reached, or the deadline expired first."""


class SearchIndexError(SearchError):
    def __init__(self, status: int, body):
        self.status = status
        self.body = body
        super().__init__(f"search error: {status} - {body}")


class SearchDecodeError(SearchError):
    """The index answered with a body we could not read."""


class SearchUnavailableError(SearchError):
    """The availability probe reports the index as down."""


class SemanticParseError(Exception):
    pass


class SemanticParserUnavailable(SemanticParseError):
    pass
