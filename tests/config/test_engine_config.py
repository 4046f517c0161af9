# tests/config/test_engine_config.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from nicestream.config.engine_config import SCHEMA_VERSION, EngineConfig, EngineConfigData
from nicestream.core.generator import GeneratorState
from nicestream.offload.coordinator import OffloadCoordinator


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    cfg = EngineConfig.load(config_path=tmp_path / "missing.json")
    assert cfg.data == EngineConfigData()
    assert not (tmp_path / "missing.json").exists()


def test_create_if_missing_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "engine.json"
    EngineConfig.load(config_path=path, create_if_missing=True)
    assert json.loads(path.read_text())["schema_version"] == SCHEMA_VERSION


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "engine.json"
    cfg = EngineConfig(path=path)
    cfg.data.offload_threshold = 250
    cfg.data.sma_period = 7
    cfg.data.generator["base_value"] = 42.0
    cfg.save()

    loaded = EngineConfig.load(config_path=path)
    assert loaded.data == cfg.data


def test_invalid_json_gives_defaults(tmp_path: Path, caplog) -> None:
    path = tmp_path / "engine.json"
    path.write_text("{not json", encoding="utf-8")
    cfg = EngineConfig.load(config_path=path)
    assert cfg.data == EngineConfigData()
    assert "not valid JSON" in caplog.text


def test_non_dict_json_gives_defaults(tmp_path: Path) -> None:
    cfg = EngineConfig.load(config_path=_write(tmp_path / "engine.json", [1, 2, 3]))
    assert cfg.data == EngineConfigData()


def test_schema_mismatch_resets_by_default(tmp_path: Path) -> None:
    path = _write(tmp_path / "engine.json", {"schema_version": 99, "window_size": 5})
    assert EngineConfig.load(config_path=path).data.window_size == EngineConfigData().window_size

    kept = EngineConfig.load(config_path=path, reset_on_version_mismatch=False)
    assert kept.data.window_size == 5
    assert kept.data.schema_version == SCHEMA_VERSION


def test_invalid_values_fall_back_per_field(tmp_path: Path, caplog) -> None:
    path = _write(
        tmp_path / "engine.json",
        {
            "schema_version": SCHEMA_VERSION,
            "offload_threshold": -5,
            "offload_timeout_s": 0,
            "window_size": 2.5,
            "initial_count": "many",
            "ema_period": True,
            "sma_period": 9,
            "generator": {"trend": "steep", "noise_amplitude": 0, "wobble": 1},
            "theme": "dark",
        },
    )
    data = EngineConfig.load(config_path=path).data
    defaults = EngineConfigData()

    assert data.offload_threshold == defaults.offload_threshold
    assert data.offload_timeout_s == defaults.offload_timeout_s
    assert data.window_size == defaults.window_size
    assert data.initial_count == defaults.initial_count
    assert data.ema_period == defaults.ema_period
    assert data.sma_period == 9
    assert data.generator["trend"] == GeneratorState().trend
    assert data.generator["noise_amplitude"] == 0.0
    assert "wobble" not in data.generator
    assert "Unknown key 'theme'" in caplog.text


def test_generator_not_a_dict_uses_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "engine.json", {"schema_version": SCHEMA_VERSION, "generator": [1]})
    assert EngineConfig.load(config_path=path).data.generator_state() == GeneratorState()


def test_default_config_path_uses_app_name() -> None:
    path = EngineConfig.default_config_path(app_name="nicestream-test")
    assert path.name == "engine_config.json"
    assert "nicestream-test" in str(path)


def test_make_generator_uses_configured_state(tmp_path: Path) -> None:
    cfg = EngineConfig(path=tmp_path / "engine.json")
    cfg.data.generator = {"base_value": 7.0, "trend": 0.0, "noise_amplitude": 0.0, "frequency": 0.0, "phase": 0.0}
    gen = cfg.make_generator(seed=1)
    assert gen.generate_point(1000).value == 7.0


def test_make_coordinator_uses_offload_settings(tmp_path: Path) -> None:
    cfg = EngineConfig(path=tmp_path / "engine.json")
    cfg.data.offload_threshold = 10
    cfg.data.offload_timeout_s = 1.5
    coord = cfg.make_coordinator(use_worker=False)
    assert isinstance(coord, OffloadCoordinator)
    assert coord.threshold == 10
    assert coord.timeout == 1.5


def test_save_propagates_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    cfg = EngineConfig(path=blocker / "engine.json")
    with pytest.raises(OSError):
        cfg.save()
