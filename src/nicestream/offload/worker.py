"""Auxiliary worker process loop.

``worker_main`` runs in a child process and answers one request at a time
over its end of a multiprocessing Pipe until it receives SHUTDOWN or the pipe
closes. It never raises back to the coordinator: every failure becomes an
ERROR reply carrying the request id when one could be read.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from nicestream.core.aggregation import aggregate_points
from nicestream.core.errors import MessageError
from nicestream.core.filtering import filter_points
from nicestream.core.types import AggregationPeriod, FilterSpec, Point
from nicestream.offload.messages import (
    AggregateRequest,
    AggregateResult,
    ErrorReply,
    FilterResult,
    Request,
    Response,
    Shutdown,
    decode_request,
    encode_message,
)
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

FilterFn = Callable[[Sequence[Point], FilterSpec], list[Point]]
AggregateFn = Callable[[Sequence[Point], AggregationPeriod], list[Point]]


def handle_request(
    request: Request,
    *,
    filter_fn: FilterFn = filter_points,
    aggregate_fn: AggregateFn = aggregate_points,
) -> Response:
    """Run the transform named by ``request`` and wrap its result."""
    if isinstance(request, AggregateRequest):
        return AggregateResult(request.request_id, tuple(aggregate_fn(request.points, request.period)))
    return FilterResult(request.request_id, tuple(filter_fn(request.points, request.spec)))


def _raw_request_id(raw: Any) -> Optional[int]:
    rid = raw.get("requestId") if isinstance(raw, dict) else None
    return rid if isinstance(rid, int) and not isinstance(rid, bool) else None


def worker_main(conn: Any) -> None:
    """Serve requests from ``conn`` until SHUTDOWN or EOF."""
    logger.debug("worker started")
    while True:
        try:
            raw = conn.recv()
        except (EOFError, OSError):
            break

        try:
            request = decode_request(raw)
        except MessageError as e:
            conn.send(encode_message(ErrorReply(_raw_request_id(raw), str(e))))
            continue

        if isinstance(request, Shutdown):
            break

        try:
            response = handle_request(request)
        except Exception as e:
            logger.exception("request %d failed in worker", request.request_id)
            response = ErrorReply(request.request_id, f"{type(e).__name__}: {e}")

        try:
            conn.send(encode_message(response))
        except (EOFError, OSError):
            break

    logger.debug("worker exiting")
    conn.close()
