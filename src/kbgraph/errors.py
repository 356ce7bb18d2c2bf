from __future__ import annotations


class GraphClientError(Exception):
    """Base class for every error raised by the knowledge-graph client."""


class GraphAPIError(GraphClientError):
    """The service answered a request with a non-success status."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code} {detail}")
        self.status_code = status_code
        self.detail = detail


class ResponseValidationError(GraphClientError):
    """A response body did not match the schema declared for its endpoint."""


class StreamError(GraphClientError):
    pass


class StreamConnectionError(StreamError, GraphAPIError):
    """The graph stream could not be opened (bad status, no body, or unreachable).

    `status_code` is None when no response was received at all.
    """

    def __init__(self, detail: str, status_code: int | None = None):
        GraphClientError.__init__(self, detail if status_code is None else f"{status_code} {detail}")
        self.status_code = status_code
        self.detail = detail


class StreamTransportError(StreamError):
    """Reading from an open graph stream failed; accumulated data is discarded."""
