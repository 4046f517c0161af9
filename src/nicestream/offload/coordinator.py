"""Venue selection for filter and aggregate transforms.

OffloadCoordinator runs small inputs inline and sends large ones to a single
auxiliary worker process. Whatever happens on the worker side (error reply,
timeout, dead process) the caller still gets the transform result, computed
inline as a fallback. The result never depends on the venue.

Request lifecycle::

    SUBMITTED -> DONE                       (inline: no worker or small input)
    SUBMITTED -> DISPATCHED -> DONE         (matching worker reply)
    SUBMITTED -> DISPATCHED -> FALLBACK_INLINE -> DONE

Each dispatched request has a unique id. A reply is only accepted while its
id is still pending; the pending entry is removed as soon as the caller stops
waiting, so a late reply for a request that already fell back is dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from nicestream.core.aggregation import aggregate_points
from nicestream.core.errors import MessageError, OffloadFailure
from nicestream.core.filtering import filter_points
from nicestream.core.types import AggregationPeriod, FilterSpec, Point
from nicestream.offload.channel import ProcessWorkerChannel, WorkerChannel
from nicestream.offload.messages import (
    RESULT_KIND,
    AggregateRequest,
    ErrorReply,
    FilterRequest,
    Request,
    Response,
    decode_response,
    encode_message,
)
from nicestream.offload.worker import AggregateFn, FilterFn
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OFFLOAD_THRESHOLD = 5_000
DEFAULT_OFFLOAD_TIMEOUT_S = 10.0


class Resolution(Enum):
    """How a request reached DONE."""
    INLINE = "inline"
    WORKER = "worker"
    FALLBACK = "fallback_inline"


@dataclass
class _PendingRequest:
    request: Request
    channel: WorkerChannel
    loop: asyncio.AbstractEventLoop
    future: asyncio.Future = field(repr=False)


def _resolve_once(future: asyncio.Future, response: Response) -> None:
    if not future.done():
        future.set_result(response)


class OffloadCoordinator:
    """Runs filter/aggregate inline or on the auxiliary worker.

    The worker is started lazily on the first request above ``threshold`` and
    stopped by ``close()``. Dispatches are serialized: at most one request is
    outstanding at a time from this coordinator's point of view.

    Args:
        filter_fn: Inline filter implementation, also used for fallback.
        aggregate_fn: Inline aggregate implementation, also used for fallback.
        threshold: Inputs with at most this many points always run inline.
        timeout: Seconds to wait for a worker reply before falling back.
        channel_factory: Builds the worker transport.
        use_worker: If False, every request runs inline.
    """

    def __init__(
        self,
        *,
        filter_fn: FilterFn = filter_points,
        aggregate_fn: AggregateFn = aggregate_points,
        threshold: int = DEFAULT_OFFLOAD_THRESHOLD,
        timeout: float = DEFAULT_OFFLOAD_TIMEOUT_S,
        channel_factory: Callable[[], WorkerChannel] = ProcessWorkerChannel,
        use_worker: bool = True,
    ) -> None:
        self._filter_fn = filter_fn
        self._aggregate_fn = aggregate_fn
        self.threshold = threshold
        self.timeout = timeout
        self._channel_factory = channel_factory
        self._worker_unavailable = not use_worker

        self._channel: Optional[WorkerChannel] = None
        self._ids = itertools.count(1)
        self._pending: dict[int, _PendingRequest] = {}
        self._pending_lock = threading.Lock()
        self._dispatch_lock = asyncio.Lock()
        self._closed = False

        self.last_resolution: Optional[Resolution] = None

    # -----------------------------
    # Public API
    # -----------------------------
    async def filter(self, points: Sequence[Point], spec: FilterSpec) -> list[Point]:
        """filter_points(points, spec), possibly computed on the worker."""
        return await self._submit(
            points,
            lambda rid: FilterRequest(rid, tuple(points), spec),
            lambda: self._filter_fn(points, spec),
        )

    async def aggregate(self, points: Sequence[Point], period: AggregationPeriod) -> list[Point]:
        """aggregate_points(points, period), possibly computed on the worker."""
        return await self._submit(
            points,
            lambda rid: AggregateRequest(rid, tuple(points), period),
            lambda: self._aggregate_fn(points, period),
        )

    @property
    def worker_started(self) -> bool:
        return self._channel is not None

    def close(self) -> None:
        """Stop the worker. Later requests run inline."""
        if self._closed:
            return
        self._closed = True
        channel, self._channel = self._channel, None
        if channel is not None:
            channel.close()
        self._fail_pending(None, "coordinator closed")

    async def aclose(self) -> None:
        await asyncio.get_running_loop().run_in_executor(None, self.close)

    async def __aenter__(self) -> "OffloadCoordinator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # -----------------------------
    # Venue selection
    # -----------------------------
    async def _submit(
        self,
        points: Sequence[Point],
        make_request: Callable[[int], Request],
        inline: Callable[[], list[Point]],
    ) -> list[Point]:
        if len(points) <= self.threshold:
            self.last_resolution = Resolution.INLINE
            return inline()

        async with self._dispatch_lock:
            channel = await self._ensure_worker()
            if channel is None:
                self.last_resolution = Resolution.INLINE
                return inline()

            request = make_request(next(self._ids))
            try:
                response = await self._dispatch(request, channel)
            except OffloadFailure as e:
                logger.warning(
                    "request %d (%s) falling back inline: %s",
                    request.request_id,
                    request.kind.value,
                    e,
                )
                self.last_resolution = Resolution.FALLBACK
                return inline()

        logger.debug("request %d (%s) answered by worker", request.request_id, request.kind.value)
        self.last_resolution = Resolution.WORKER
        return list(response.points)

    async def _ensure_worker(self) -> Optional[WorkerChannel]:
        if self._worker_unavailable or self._closed:
            return None
        if self._channel is not None:
            if self._channel.alive:
                return self._channel
            logger.warning("worker is no longer running, restarting")
            dead, self._channel = self._channel, None
            # close joins the process and reader thread; keep it off the loop
            await asyncio.get_running_loop().run_in_executor(None, dead.close)
            if self._closed:
                return None

        try:
            channel = self._channel_factory()
            channel.start(self._on_worker_message, lambda: self._on_worker_closed(channel))
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning("auxiliary worker unavailable, running inline: %s", e)
            self._worker_unavailable = True
            return None
        self._channel = channel
        return channel

    # -----------------------------
    # Dispatch and correlation
    # -----------------------------
    async def _dispatch(self, request: Request, channel: WorkerChannel) -> Response:
        loop = asyncio.get_running_loop()
        pending = _PendingRequest(request, channel, loop, loop.create_future())
        rid = request.request_id

        with self._pending_lock:
            self._pending[rid] = pending
        try:
            channel.send(encode_message(request))
            try:
                response = await asyncio.wait_for(pending.future, self.timeout)
            except asyncio.TimeoutError:
                raise OffloadFailure(f"no reply within {self.timeout}s") from None
        finally:
            # closes the gate: replies for rid are ignored from here on
            with self._pending_lock:
                self._pending.pop(rid, None)

        if isinstance(response, ErrorReply):
            raise OffloadFailure(f"worker error: {response.message}")
        if response.kind is not RESULT_KIND[request.kind]:
            raise OffloadFailure(f"worker answered {request.kind.value} with {response.kind.value}")
        return response

    def _on_worker_message(self, raw: Any) -> None:
        """Called on the channel's reader thread."""
        try:
            response = decode_response(raw)
        except MessageError as e:
            logger.warning("dropping malformed worker message: %s", e)
            return

        if response.request_id is None:
            # worker could not read the request id; fail whatever is outstanding
            self._fail_pending(None, getattr(response, "message", "uncorrelated worker reply"))
            return

        with self._pending_lock:
            pending = self._pending.get(response.request_id)
        if pending is None:
            logger.debug("discarding late reply for request %d", response.request_id)
            return
        self._complete(pending, response)

    def _on_worker_closed(self, channel: WorkerChannel) -> None:
        self._fail_pending(channel, "worker exited")

    def _fail_pending(self, channel: Optional[WorkerChannel], message: str) -> None:
        with self._pending_lock:
            targets = [
                p for p in self._pending.values()
                if channel is None or p.channel is channel
            ]
        for pending in targets:
            self._complete(pending, ErrorReply(pending.request.request_id, message))

    @staticmethod
    def _complete(pending: _PendingRequest, response: Response) -> None:
        try:
            pending.loop.call_soon_threadsafe(_resolve_once, pending.future, response)
        except RuntimeError:
            logger.debug("event loop closed before request %d completed", pending.request.request_id)
