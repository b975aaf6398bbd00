"""Configuration models and loaders."""

from .config import (
    Config,
    DiscoveryConfig,
    ExtractionSettings,
    FetchConfig,
    MonitoringConfig,
    OcrConfig,
    RenderConfig,
    StructuringConfig,
    ValidationConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "Config",
    "DiscoveryConfig",
    "ExtractionSettings",
    "FetchConfig",
    "MonitoringConfig",
    "OcrConfig",
    "RenderConfig",
    "StructuringConfig",
    "ValidationConfig",
    "find_config_file",
    "load_config",
]
