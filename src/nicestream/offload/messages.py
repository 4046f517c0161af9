"""Worker protocol messages.

Messages travel between the coordinator and the worker as plain dicts::

    {"kind": "AGGREGATE" | "FILTER", "requestId": int,
     "payload": {"points": [...], "period": {...}} | {"points": [...], "spec": {...}}}
    {"kind": "AGGREGATE_RESULT" | "FILTER_RESULT", "requestId": int, "payload": [...]}
    {"kind": "ERROR", "requestId": int | None, "message": str}
    {"kind": "SHUTDOWN"}

Inside the process, each kind maps to one frozen dataclass. ``decode_request``
and ``decode_response`` are the only entry points from the wire and raise
MessageError for anything outside that closed set.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from nicestream.core.errors import MessageError
from nicestream.core.types import AggregationPeriod, FilterSpec, Point


class MessageKind(Enum):
    AGGREGATE = "AGGREGATE"
    FILTER = "FILTER"
    AGGREGATE_RESULT = "AGGREGATE_RESULT"
    FILTER_RESULT = "FILTER_RESULT"
    ERROR = "ERROR"
    SHUTDOWN = "SHUTDOWN"


@dataclass(frozen=True)
class AggregateRequest:
    request_id: int
    points: tuple[Point, ...]
    period: AggregationPeriod

    kind = MessageKind.AGGREGATE


@dataclass(frozen=True)
class FilterRequest:
    request_id: int
    points: tuple[Point, ...]
    spec: FilterSpec

    kind = MessageKind.FILTER


@dataclass(frozen=True)
class AggregateResult:
    request_id: int
    points: tuple[Point, ...]

    kind = MessageKind.AGGREGATE_RESULT


@dataclass(frozen=True)
class FilterResult:
    request_id: int
    points: tuple[Point, ...]

    kind = MessageKind.FILTER_RESULT


@dataclass(frozen=True)
class ErrorReply:
    request_id: Optional[int]
    message: str

    kind = MessageKind.ERROR


@dataclass(frozen=True)
class Shutdown:
    kind = MessageKind.SHUTDOWN


Request = Union[AggregateRequest, FilterRequest]
Response = Union[AggregateResult, FilterResult, ErrorReply]
Message = Union[AggregateRequest, FilterRequest, AggregateResult, FilterResult, ErrorReply, Shutdown]

# Result kind a worker must answer each request kind with.
RESULT_KIND = {
    MessageKind.AGGREGATE: MessageKind.AGGREGATE_RESULT,
    MessageKind.FILTER: MessageKind.FILTER_RESULT,
}


def _points_to_wire(points: tuple[Point, ...]) -> list[dict[str, Any]]:
    return [p.to_dict() for p in points]


def _points_from_wire(raw: Any) -> tuple[Point, ...]:
    if not isinstance(raw, list):
        raise MessageError(f"points must be a list, got {type(raw).__name__}")
    try:
        return tuple(Point.from_dict(p) for p in raw)
    except (KeyError, TypeError, ValueError) as e:
        raise MessageError(f"invalid point in message: {e}") from e


def _request_id(d: Mapping[str, Any], *, optional: bool = False) -> Optional[int]:
    rid = d.get("requestId")
    if rid is None and optional:
        return None
    if isinstance(rid, bool) or not isinstance(rid, int):
        raise MessageError(f"requestId must be an int, got {rid!r}")
    return rid


def _kind(d: Any) -> MessageKind:
    if not isinstance(d, Mapping):
        raise MessageError(f"message must be a dict, got {type(d).__name__}")
    try:
        return MessageKind(d.get("kind"))
    except ValueError as e:
        raise MessageError(f"unknown message kind: {d.get('kind')!r}") from e


def _payload(d: Mapping[str, Any]) -> Mapping[str, Any]:
    payload = d.get("payload")
    if not isinstance(payload, Mapping):
        raise MessageError("request payload must be a dict")
    return payload


def encode_message(msg: Message) -> dict[str, Any]:
    """Convert a message dataclass to its wire dict."""
    if isinstance(msg, AggregateRequest):
        payload = {"points": _points_to_wire(msg.points), "period": msg.period.to_dict()}
        return {"kind": msg.kind.value, "requestId": msg.request_id, "payload": payload}
    if isinstance(msg, FilterRequest):
        payload = {"points": _points_to_wire(msg.points), "spec": msg.spec.to_dict()}
        return {"kind": msg.kind.value, "requestId": msg.request_id, "payload": payload}
    if isinstance(msg, (AggregateResult, FilterResult)):
        return {"kind": msg.kind.value, "requestId": msg.request_id, "payload": _points_to_wire(msg.points)}
    if isinstance(msg, ErrorReply):
        return {"kind": msg.kind.value, "requestId": msg.request_id, "message": msg.message}
    if isinstance(msg, Shutdown):
        return {"kind": msg.kind.value}
    raise MessageError(f"cannot encode {type(msg).__name__}")


def decode_request(d: Any) -> Union[Request, Shutdown]:
    """Validate a wire dict received by the worker."""
    kind = _kind(d)
    if kind is MessageKind.SHUTDOWN:
        return Shutdown()
    if kind is MessageKind.AGGREGATE:
        rid = _request_id(d)
        payload = _payload(d)
        try:
            period = AggregationPeriod.from_dict(payload["period"])
        except (KeyError, TypeError, ValueError) as e:
            raise MessageError(f"invalid aggregation period: {e}") from e
        return AggregateRequest(rid, _points_from_wire(payload.get("points")), period)
    if kind is MessageKind.FILTER:
        rid = _request_id(d)
        payload = _payload(d)
        try:
            spec = FilterSpec.from_dict(payload.get("spec") or {})
        except (KeyError, TypeError, ValueError) as e:
            raise MessageError(f"invalid filter spec: {e}") from e
        return FilterRequest(rid, _points_from_wire(payload.get("points")), spec)
    raise MessageError(f"{kind.value} is not a request kind")


def decode_response(d: Any) -> Response:
    """Validate a wire dict received by the coordinator."""
    kind = _kind(d)
    if kind is MessageKind.AGGREGATE_RESULT:
        return AggregateResult(_request_id(d), _points_from_wire(d.get("payload")))
    if kind is MessageKind.FILTER_RESULT:
        return FilterResult(_request_id(d), _points_from_wire(d.get("payload")))
    if kind is MessageKind.ERROR:
        return ErrorReply(_request_id(d, optional=True), str(d.get("message", "")))
    raise MessageError(f"{kind.value} is not a response kind")
