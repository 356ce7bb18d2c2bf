from __future__ import annotations

import logging
from contextlib import aclosing
from enum import Enum

import httpx

from kbgraph.errors import StreamConnectionError, StreamTransportError
from kbgraph.http import stream_timeout
from kbgraph.models import KnowledgeGraph

from .events import EventKind, Ignored, ParseFailure, StreamEvent, classify_frame
from .frames import aiter_frames

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    idle = "idle"
    connecting = "connecting"
    streaming = "streaming"
    completed = "completed"
    failed = "failed"


class GraphStreamCoordinator:
    """Pulls a streamed knowledge graph and accumulates it frame by frame.

    One coordinator serves exactly one call of `run`. After it returns,
    `terminated_by_server` tells whether the server sent `complete` or the
    connection simply ended; both count as success. On a connection or read
    failure nothing accumulated is returned.

    The HTTP response is opened with `async with`, so it is released on
    every exit path, including cancellation of the awaiting task.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self._http = http
        self._url = url
        self._headers = headers or {}
        self._log = log or logger

        self.state = StreamState.idle
        self.terminated_by_server = False
        self.ignored_frames = 0
        self.malformed_frames = 0
        self.rejected_records = 0

    async def run(self) -> KnowledgeGraph:
        if self.state is not StreamState.idle:
            raise RuntimeError(f"stream coordinator already used (state={self.state.value})")

        self.state = StreamState.connecting
        try:
            async with self._http.stream(
                "GET", self._url, headers=self._headers, timeout=stream_timeout()
            ) as response:
                self._check_response(response)
                self.state = StreamState.streaming
                graph = await self._consume(response)
        except httpx.RequestError as e:
            failed_while = self.state
            self.state = StreamState.failed
            if failed_while is StreamState.connecting:
                raise StreamConnectionError(f"could not open graph stream: {e}") from e
            self._log.error(f"Graph stream read failed, discarding partial graph: {e}")
            raise StreamTransportError(f"graph stream read failed: {e}") from e
        except BaseException:
            self.state = StreamState.failed
            raise

        self.state = StreamState.completed
        return graph

    def _check_response(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise StreamConnectionError(response.reason_phrase, status_code=response.status_code)
        if response.status_code == 204 or response.headers.get("content-length") == "0":
            raise StreamConnectionError("Empty response body", status_code=response.status_code)

    async def _consume(self, response: httpx.Response) -> KnowledgeGraph:
        graph = KnowledgeGraph()

        async with aclosing(aiter_frames(response.aiter_bytes())) as frames:
            async for frame in frames:
                outcome = classify_frame(frame)

                if isinstance(outcome, StreamEvent):
                    if outcome.kind is EventKind.complete:
                        self.terminated_by_server = True
                        self._log.info(
                            f"Streaming complete. Final counts - entities: {len(graph.entities)}, "
                            f"relationships: {len(graph.relationships)}"
                        )
                        return graph
                    if outcome.kind is EventKind.entities:
                        graph.entities.extend(outcome.records)
                        total = len(graph.entities)
                    else:
                        graph.relationships.extend(outcome.records)
                        total = len(graph.relationships)
                    if outcome.rejected:
                        self.rejected_records += len(outcome.rejected)
                        self._log.warning(
                            f"Dropped {len(outcome.rejected)} invalid {outcome.kind.value} record(s): "
                            + "; ".join(outcome.rejected[:5])
                        )
                    self._log.info(
                        f"Received {len(outcome.records)} {outcome.kind.value}, total: {total}"
                    )
                elif isinstance(outcome, ParseFailure):
                    self.malformed_frames += 1
                    self._log.warning(
                        f"Failed to parse streaming data: {outcome.error}. Data: {outcome.payload[:200]}"
                    )
                elif isinstance(outcome, Ignored):
                    self.ignored_frames += 1
                    if outcome.event_type is not None:
                        self._log.warning(f"Skipping unrecognized stream event type: {outcome.event_type}")
                    else:
                        self._log.debug(f"Skipping frame: {outcome.reason}")

        self._log.info(
            f"Stream ended without a complete event. Returning entities: {len(graph.entities)}, "
            f"relationships: {len(graph.relationships)}"
        )
        return graph
