# tests/offload/test_worker.py
from __future__ import annotations

from typing import Any

import pytest

from nicestream.core.aggregation import aggregate_points
from nicestream.core.filtering import filter_points
from nicestream.core.types import ONE_MINUTE, FilterSpec, Point
from nicestream.offload import worker
from nicestream.offload.messages import (
    AggregateRequest,
    FilterRequest,
    FilterResult,
    Shutdown,
    decode_request,
    decode_response,
    encode_message,
)

POINTS = tuple(Point(1000 + i * 100, float(10 * (i + 1))) for i in range(5))


class FakeConn:
    """Pipe end that replays ``inbox`` and records sends; EOF when drained."""

    def __init__(self, inbox: list[Any]) -> None:
        self.inbox = list(inbox)
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    def recv(self) -> Any:
        if not self.inbox:
            raise EOFError
        return self.inbox.pop(0)

    def send(self, msg: dict[str, Any]) -> None:
        self.sent.append(msg)

    def close(self) -> None:
        self.closed = True


def test_handle_request_dispatches_by_kind() -> None:
    res = worker.handle_request(AggregateRequest(1, POINTS, ONE_MINUTE))
    assert list(res.points) == aggregate_points(POINTS, ONE_MINUTE)
    res = worker.handle_request(FilterRequest(2, POINTS, FilterSpec(min_value=30)))
    assert list(res.points) == filter_points(POINTS, FilterSpec(min_value=30))


def test_handle_request_uses_injected_transforms() -> None:
    res = worker.handle_request(
        FilterRequest(5, POINTS, FilterSpec()),
        filter_fn=lambda points, spec: list(points[:1]),
    )
    assert res == FilterResult(5, POINTS[:1])


def test_worker_answers_requests_in_order_then_exits_on_eof() -> None:
    conn = FakeConn(
        [
            encode_message(FilterRequest(1, POINTS, FilterSpec(min_value=30))),
            encode_message(AggregateRequest(2, POINTS, ONE_MINUTE)),
        ]
    )
    worker.worker_main(conn)

    assert [m["requestId"] for m in conn.sent] == [1, 2]
    assert conn.sent[0]["kind"] == "FILTER_RESULT"
    assert [p["timestamp"] for p in conn.sent[0]["payload"]] == [1200, 1300, 1400]
    assert conn.sent[1]["kind"] == "AGGREGATE_RESULT"
    assert conn.sent[1]["payload"][0]["metadata"] == {"aggregated": True, "original_count": 5}
    assert conn.closed


def test_worker_stops_on_shutdown() -> None:
    conn = FakeConn(
        [
            encode_message(Shutdown()),
            encode_message(FilterRequest(1, POINTS, FilterSpec())),
        ]
    )
    worker.worker_main(conn)
    assert conn.sent == []
    assert len(conn.inbox) == 1
    assert conn.closed


def test_worker_replies_error_for_malformed_message() -> None:
    conn = FakeConn(
        [
            {"kind": "FILTER", "requestId": 4, "payload": {"points": 12}},
            {"kind": "BOGUS"},
            encode_message(FilterRequest(5, POINTS, FilterSpec())),
        ]
    )
    worker.worker_main(conn)

    assert conn.sent[0]["kind"] == "ERROR"
    assert conn.sent[0]["requestId"] == 4
    assert conn.sent[1] == {"kind": "ERROR", "requestId": None, "message": conn.sent[1]["message"]}
    assert conn.sent[2]["kind"] == "FILTER_RESULT"


def test_worker_turns_transform_failure_into_error_reply(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(request):
        raise RuntimeError("transform exploded")

    monkeypatch.setattr(worker, "handle_request", boom)
    conn = FakeConn([encode_message(FilterRequest(8, POINTS, FilterSpec()))])
    worker.worker_main(conn)

    assert len(conn.sent) == 1
    assert conn.sent[0]["kind"] == "ERROR"
    assert conn.sent[0]["requestId"] == 8
    assert "transform exploded" in conn.sent[0]["message"]


def test_filter_through_wire_matches_inline_for_fractional_timestamps() -> None:
    points = (Point(1500.5, 10.0), Point(2500.7, 20.0))
    spec = FilterSpec(min_value=5)
    request = decode_request(encode_message(FilterRequest(1, points, spec)))
    reply = decode_response(encode_message(worker.handle_request(request)))
    assert list(reply.points) == filter_points(points, spec)
    assert [p.timestamp for p in reply.points] == [1500, 2500]
