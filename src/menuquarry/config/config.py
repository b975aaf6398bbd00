"""
Configuration management for menuquarry using Pydantic.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from menuquarry.protocols import PRICE_UNKNOWN

# --- Setup Logging ---
log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
DEFAULT_STRUCTURING_ENDPOINT = "http://localhost:11434/api/chat"

# --- Nested Configuration Models ---


class FetchConfig(BaseModel):
    """HTTP fetch configuration."""

    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent string for HTTP requests.")
    page_timeout: float = Field(default=15.0, description="Timeout for candidate page fetches in seconds.")
    homepage_timeout: float = Field(default=10.0, description="Timeout for the homepage fetch during discovery.")
    sitemap_timeout: float = Field(default=10.0, description="Timeout for sitemap fetches.")
    robots_timeout: float = Field(default=5.0, description="Timeout for robots.txt fetches.")
    head_timeout: float = Field(default=5.0, description="Timeout for lightweight existence checks.")
    max_retries: int = Field(default=1, ge=0, description="Retry attempts on 429/502/503/504 responses.")
    max_concurrency_per_domain: int = Field(default=6, ge=1, description="Maximum concurrent requests per host.")


class DiscoveryConfig(BaseModel):
    """Candidate discovery and ranking configuration."""

    sitemap_keywords: List[str] = Field(default_factory=lambda: ["menu", "carte"])
    link_keywords: List[str] = Field(default_factory=lambda: ["menu", "carte", "food"])
    common_paths: List[str] = Field(
        default_factory=lambda: [
            "/menu",
            "/menus",
            "/carte",
            "/la-carte",
            "/menu.pdf",
            "/carte.pdf",
            "/speisekarte",
            "/menu-carte",
            "/our-menu",
            "/food",
            "/food-menu",
            "/dinner-menu",
            "/lunch-menu",
            "/restaurant/menu",
            "/fr/carte",
            "/de/speisekarte",
            "/it/menu",
            "/es/carta",
            "/carta",
        ]
    )
    max_sitemap_depth: int = Field(default=5, ge=0, description="Maximum nesting depth for sitemap indexes.")
    max_candidates: int = Field(default=15, ge=1, description="Only the top N ranked candidates are attempted.")
    batch_size: int = Field(default=3, ge=1, description="Candidates processed concurrently per batch.")

    @field_validator("common_paths")
    @classmethod
    def ensure_leading_slash(cls, v: List[str]) -> List[str]:
        return [path if path.startswith("/") else f"/{path}" for path in v]


class ExtractionSettings(BaseModel):
    """Text extraction thresholds."""

    min_region_length: int = Field(default=200, description="Raw length a menu region must exceed to be kept.")
    min_text_length: int = Field(default=100, description="Extracted text shorter than this is treated as empty.")
    price_weight: int = Field(default=10, description="Weight of each price-like match in region scoring.")


class OcrConfig(BaseModel):
    """PDF text and OCR configuration."""

    languages: List[str] = Field(default_factory=lambda: ["eng", "fra", "deu", "ita", "spa"])
    page_segmentation_mode: int = Field(default=6, description="Tesseract --psm value (6 = single uniform block).")
    dpi: int = Field(default=300, description="Rasterization resolution for scanned PDFs.")
    max_pages: int = Field(default=10, ge=1, description="Maximum PDF pages sent to OCR.")
    min_text_length: int = Field(default=50, description="Text-layer output longer than this skips OCR.")
    timeout: float = Field(default=120.0, description="Overall OCR timeout in seconds.")
    char_whitelist: str = Field(
        default=(
            "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
            "àâäáãåçéèêëíìîïñóòôöõúùûüÿœæßÀÂÄÁÃÅÇÉÈÊËÍÌÎÏÑÓÒÔÖÕÚÙÛÜŸŒÆ"
            "€$£¥.,:;!?-/()&%+*#@"
        ),
        description="Characters tesseract is allowed to emit.",
    )


class RenderConfig(BaseModel):
    """Headless browser configuration."""

    enabled: bool = Field(default=True, description="Use a headless browser for the direct strategy.")
    headless: bool = True
    navigation_timeout: float = Field(default=30.0, description="Page load timeout in seconds.")
    settle_delay: float = Field(default=3.0, description="Wait after load for deferred content.")
    click_settle_delay: float = Field(default=2.0, description="Wait after a reveal click.")
    click_timeout: float = Field(default=5.0, description="Timeout for a single reveal click.")
    total_timeout: float = Field(default=60.0, description="Upper bound for one render call.")
    reveal_selectors: List[str] = Field(
        default_factory=lambda: [
            'button[class*="menu" i]',
            'button[id*="menu" i]',
            'a[href*="menu" i]',
            'a[class*="menu" i]',
            'button[class*="carte" i]',
            'a[href*="carte" i]',
        ]
    )


class StructuringConfig(BaseModel):
    """External text-to-structured-data service configuration."""

    endpoint: str = Field(
        default_factory=lambda: os.getenv("OLLAMA_API_ENDPOINT", DEFAULT_STRUCTURING_ENDPOINT),
        description="Chat endpoint of the structuring service.",
    )
    model: str = Field(default="mistral:7b")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    seed: int = 0
    context_window: int = Field(default=8192, description="num_ctx sent to the service.")
    timeout: float = Field(default=45.0, description="Request timeout in seconds.")
    max_chars: int = Field(default=16000, ge=1000, description="Character budget for the text sent.")
    price_sentinel: str = Field(default=PRICE_UNKNOWN, description="Price used when a menu item has none.")


class ValidationConfig(BaseModel):
    """Menu acceptance thresholds. Empirically tuned, not derived."""

    min_items: int = Field(default=3, ge=1)
    min_well_formed_ratio: float = Field(default=0.6, ge=0.0, le=1.0)
    min_name_length: int = Field(default=3, description="Names must have at least this many characters.")
    require_real_price: bool = True
    generic_names: List[str] = Field(
        default_factory=lambda: ["entrée", "plat", "dessert", "starter", "main", "dish", "item", "menu item"]
    )


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    prometheus_port: int | None = Field(default=None, description="Port for Prometheus metrics exporter.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "menuquarry"
    version: str = "0.1.0"
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    ocr: OcrConfig = Field(default_factory=OcrConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    structuring: StructuringConfig = Field(default_factory=StructuringConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="MENUQUARRY_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data: Optional[Any] = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    paths_to_check = [
        current_dir / "menuquarry.yaml",
        current_dir / "menuquarry.yml",
        current_dir / "config.yaml",
        current_dir / "config.yml",
    ]
    for path in paths_to_check:
        if path.exists():
            return path
    return None


def load_config(path: Path | None = None) -> Config:
    """Load configuration from an explicit path, a discovered file, or defaults."""
    config_path = path or find_config_file()
    if config_path:
        log.info("Loading configuration from: %s", config_path)
        return Config.from_yaml(config_path)
    log.info("No config file found. Using default settings.")
    return Config()
