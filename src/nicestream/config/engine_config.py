"""
Engine config persistence for nicestream (platformdirs + JSON).

Persisted items (schema v1):
- offload: threshold (points) and timeout (seconds)
- stream: retained window size, tick interval, initial point count
- render: decimation max_points, SMA/EMA periods
- generator: signal model parameters

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown keys in loaded JSON are ignored with warnings
- Values of the wrong type or out of range fall back to their default
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from nicestream.core.generator import DataGenerator, GeneratorState
from nicestream.offload.coordinator import (
    DEFAULT_OFFLOAD_THRESHOLD,
    DEFAULT_OFFLOAD_TIMEOUT_S,
    OffloadCoordinator,
)
from nicestream.stream.data_stream import DEFAULT_WINDOW_SIZE
from nicestream.stream.pipeline import DEFAULT_MAX_RENDER_POINTS
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1


@dataclass
class EngineConfigData:
    """
    JSON-serializable config payload.

    Keep fields JSON-friendly: primitives and one nested dict for the
    generator parameters.
    """
    schema_version: int = SCHEMA_VERSION
    offload_threshold: int = DEFAULT_OFFLOAD_THRESHOLD
    offload_timeout_s: float = DEFAULT_OFFLOAD_TIMEOUT_S
    window_size: int = DEFAULT_WINDOW_SIZE
    stream_interval_s: float = 0.1
    initial_count: int = 1000
    max_render_points: int = DEFAULT_MAX_RENDER_POINTS
    sma_period: int = 20
    ema_period: int = 12
    generator: Dict[str, float] = field(default_factory=lambda: asdict(GeneratorState()))

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "EngineConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - tolerates missing values
        - replaces invalid values with defaults
        """
        defaults = cls()
        kwargs: Dict[str, Any] = {}

        kwargs["schema_version"] = _as_int(d.get("schema_version"), -1, minimum=None)
        kwargs["offload_threshold"] = _as_int(d.get("offload_threshold"), defaults.offload_threshold, minimum=0)
        kwargs["offload_timeout_s"] = _as_float(d.get("offload_timeout_s"), defaults.offload_timeout_s, positive=True)
        kwargs["window_size"] = _as_int(d.get("window_size"), defaults.window_size, minimum=1)
        kwargs["stream_interval_s"] = _as_float(d.get("stream_interval_s"), defaults.stream_interval_s, positive=True)
        kwargs["initial_count"] = _as_int(d.get("initial_count"), defaults.initial_count, minimum=0)
        kwargs["max_render_points"] = _as_int(d.get("max_render_points"), defaults.max_render_points, minimum=1)
        kwargs["sma_period"] = _as_int(d.get("sma_period"), defaults.sma_period, minimum=1)
        kwargs["ema_period"] = _as_int(d.get("ema_period"), defaults.ema_period, minimum=1)

        generator = dict(defaults.generator)
        raw_generator = d.get("generator")
        if isinstance(raw_generator, dict):
            for key, value in raw_generator.items():
                if key not in generator:
                    logger.warning(f"Unknown generator key '{key}' in engine config, ignoring")
                    continue
                generator[key] = _as_float(value, generator[key])
        elif raw_generator is not None:
            logger.warning("generator is not a dict, using defaults")
        kwargs["generator"] = generator

        known_keys = {f.name for f in fields(cls)}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in engine config, ignoring")

        return cls(**kwargs)

    def generator_state(self) -> GeneratorState:
        return GeneratorState(**self.generator)


def _as_int(value: Any, default: int, *, minimum: Optional[int] = 0) -> int:
    if value is None:
        return default
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or int(value) != value
    ):
        logger.warning(f"Expected an integer in engine config, got {value!r}; using {default}")
        return default
    if minimum is not None and value < minimum:
        logger.warning(f"Value {value!r} below minimum {minimum} in engine config; using {default}")
        return default
    return int(value)


def _as_float(value: Any, default: float, *, positive: bool = False) -> float:
    if value is None:
        return default
    try:
        f = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Expected a number in engine config, got {value!r}; using {default}")
        return default
    if positive and not f > 0:
        logger.warning(f"Value {value!r} must be positive in engine config; using {default}")
        return default
    return f


class EngineConfig:
    """
    Manager for loading/saving EngineConfigData to disk, and for building
    engine components from it.
    """

    def __init__(self, *, path: Path, data: Optional[EngineConfigData] = None):
        self.path = path
        self.data = data if data is not None else EngineConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = "nicestream",
        filename: str = "engine_config.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/nicestream/engine_config.json
        Linux:   ~/.config/nicestream/engine_config.json
        Windows: %APPDATA%\\nicestream\\engine_config.json
        """
        d = Path(user_config_dir(app_name, app_author))
        return d / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = "nicestream",
        filename: str = "engine_config.json",
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "EngineConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = EngineConfigData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                logger.warning(f"Engine config file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = EngineConfigData.from_json_dict(parsed)

            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Engine config schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    return cls(path=path, data=default_data)
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)
        except FileNotFoundError:
            logger.debug(f"Engine config file not found at {path}, using defaults")
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except json.JSONDecodeError as e:
            logger.warning(f"Engine config file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        except OSError as e:
            logger.warning(f"Error reading engine config from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write config to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved engine config to {self.path}")
        except OSError as e:
            logger.error(f"Error saving engine config to {self.path}: {e}")
            raise

    # -----------------------------
    # Component factories
    # -----------------------------
    def make_generator(self, *, seed: Optional[int] = None) -> DataGenerator:
        return DataGenerator.from_state(self.data.generator_state(), seed=seed)

    def make_coordinator(self, **kwargs: Any) -> OffloadCoordinator:
        return OffloadCoordinator(
            threshold=self.data.offload_threshold,
            timeout=self.data.offload_timeout_s,
            **kwargs,
        )
