"""Persisted engine settings."""

from nicestream.config.engine_config import SCHEMA_VERSION, EngineConfig, EngineConfigData

__all__ = [
    "EngineConfig",
    "EngineConfigData",
    "SCHEMA_VERSION",
]
