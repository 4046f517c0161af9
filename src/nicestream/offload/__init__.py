"""Offload of filter/aggregate transforms to an auxiliary worker process."""

from nicestream.offload.channel import ProcessWorkerChannel, WorkerChannel
from nicestream.offload.coordinator import (
    DEFAULT_OFFLOAD_THRESHOLD,
    DEFAULT_OFFLOAD_TIMEOUT_S,
    OffloadCoordinator,
    Resolution,
)

__all__ = [
    "DEFAULT_OFFLOAD_THRESHOLD",
    "DEFAULT_OFFLOAD_TIMEOUT_S",
    "OffloadCoordinator",
    "ProcessWorkerChannel",
    "Resolution",
    "WorkerChannel",
]
