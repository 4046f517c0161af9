"""Synthetic time-series generation.

DataGenerator produces a noisy trending signal: a linear trend, a sinusoid of
fixed amplitude and uniform noise, clamped at zero. Each generator owns its
GeneratorState and its random source; no state is shared between instances.
"""

from __future__ import annotations

import math
import numbers
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from nicestream.core.errors import InvalidCount, InvalidPeriod, InvalidTimestamp
from nicestream.core.types import Point
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

# Largest integer a float64 represents exactly; time is clamped below it.
MAX_SAFE_INTEGER = 2**53 - 1
MAX_INITIAL_COUNT = 100_000
STREAM_INTERVAL_MS = 100
SINE_AMPLITUDE = 20.0


@dataclass(frozen=True)
class GeneratorState:
    """Signal model parameters, fixed at construction."""
    base_value: float = 100.0
    trend: float = 0.1            # drift per second
    noise_amplitude: float = 10.0  # peak-to-peak width of the uniform noise
    frequency: float = 0.001      # sinusoid frequency in Hz
    phase: float = 0.0


def _now_ms() -> int:
    return int(time.time() * 1000)


def _round2(value: float) -> float:
    # half-up rounding; value is never negative here
    return math.floor(value * 100 + 0.5) / 100


class DataGenerator:
    """Stateful producer of synthetic points.

    Args:
        base_value: Signal level at t=0.
        trend: Linear drift per second.
        noise_amplitude: Width of the uniform noise band.
        frequency: Sinusoid frequency (Hz).
        phase: Sinusoid phase offset (radians).
        seed: Optional seed for the instance's noise source.
        clock: Wall-clock source in epoch milliseconds; defaults to time.time().
    """

    def __init__(
        self,
        base_value: float = 100.0,
        trend: float = 0.1,
        noise_amplitude: float = 10.0,
        frequency: float = 0.001,
        phase: float = 0.0,
        *,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.state = GeneratorState(
            base_value=base_value,
            trend=trend,
            noise_amplitude=noise_amplitude,
            frequency=frequency,
            phase=phase,
        )
        self._rng = random.Random(seed)
        self._clock = clock or _now_ms

    @classmethod
    def from_state(
        cls,
        state: GeneratorState,
        *,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> "DataGenerator":
        return cls(
            state.base_value,
            state.trend,
            state.noise_amplitude,
            state.frequency,
            state.phase,
            seed=seed,
            clock=clock,
        )

    def now(self) -> int:
        return int(self._clock())

    def generate_point(self, timestamp: float, category: Optional[str] = None) -> Point:
        """Generate a single point at ``timestamp`` (epoch ms).

        A fractional timestamp is truncated to whole milliseconds.

        Raises:
            InvalidTimestamp: If timestamp is not a finite, non-negative number.
        """
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, numbers.Real)
            or not math.isfinite(timestamp)
            or timestamp < 0
        ):
            raise InvalidTimestamp(
                f"Invalid timestamp: {timestamp!r}. Timestamp must be a finite non-negative number."
            )
        timestamp = int(timestamp)

        s = self.state
        t = min(timestamp / 1000, MAX_SAFE_INTEGER / 1000)

        try:
            trend_value = s.base_value + s.trend * t
            sine_wave = math.sin(2 * math.pi * s.frequency * t + s.phase) * SINE_AMPLITUDE
            noise = (self._rng.random() - 0.5) * s.noise_amplitude
            raw = trend_value + sine_wave + noise
        except (ValueError, OverflowError):
            raw = math.nan

        if not math.isfinite(raw):
            logger.warning("Generated invalid value for timestamp %s, using base_value", timestamp)
            return Point(
                timestamp=timestamp,
                value=s.base_value,
                category=category,
                metadata={
                    "generated": True,
                    "degraded": True,
                    "error": "Invalid value generated, used base_value",
                },
            )

        return Point(
            timestamp=timestamp,
            value=_round2(max(0.0, raw)),
            category=category,
            metadata={"generated": True},
        )

    def generate_batch(
        self,
        start: int,
        end: int,
        interval_ms: int = STREAM_INTERVAL_MS,
        category: Optional[str] = None,
    ) -> list[Point]:
        """Generate points every ``interval_ms`` over [start, end], endpoints inclusive."""
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, numbers.Real) or not interval_ms > 0:
            raise InvalidPeriod(f"Invalid interval: {interval_ms!r}. Interval must be positive.")

        points: list[Point] = []
        ts = start
        while ts <= end:
            points.append(self.generate_point(ts, category))
            ts += interval_ms
        return points

    def generate_initial_dataset(self, count: int = 1000) -> list[Point]:
        """Generate ``count`` points spaced 100 ms apart, ending now.

        ``count`` is clamped to MAX_INITIAL_COUNT.

        Raises:
            InvalidCount: If count is not a non-negative integer.
        """
        is_integer = isinstance(count, numbers.Integral) or (
            isinstance(count, float) and count.is_integer()
        )
        if isinstance(count, bool) or not is_integer or count < 0:
            raise InvalidCount(f"Invalid count: {count!r}. Count must be a non-negative integer.")

        count = int(count)
        safe_count = min(count, MAX_INITIAL_COUNT)
        if safe_count != count:
            logger.warning("Count limited from %d to %d to prevent memory issues", count, safe_count)
        if safe_count == 0:
            return []

        now = self.now()
        start = now - (safe_count - 1) * STREAM_INTERVAL_MS
        return self.generate_batch(start, now, STREAM_INTERVAL_MS)

    def generate_next_point(self, previous: Optional[Point] = None) -> Point:
        """Continue a stream 100 ms after ``previous``, or anchor at now."""
        timestamp = previous.timestamp + STREAM_INTERVAL_MS if previous is not None else self.now()
        return self.generate_point(timestamp)
