"""
Dependency injection container for menuquarry collaborators.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar
from uuid import uuid4

import structlog

from menuquarry.config import Config

if TYPE_CHECKING:
    from menuquarry.crawler.http_client import HttpClient
    from menuquarry.discovery import CandidateDiscoverer
    from menuquarry.extractor import ExtractorManager
    from menuquarry.orchestrator import MenuOrchestrator
    from menuquarry.quality import MenuValidator
    from menuquarry.rendering import PlaywrightRenderer
    from menuquarry.structuring import StructuringClient

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    async def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            if hasattr(self._instance, "initialize") and callable(getattr(self._instance, "initialize", None)):
                await self._instance.initialize()  # type: ignore
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Clean up the instance."""
        if self._instance and hasattr(self._instance, "close") and callable(getattr(self._instance, "close", None)):
            await self._instance.close()  # type: ignore
        self._instance = None
        self._initialized = False


class DependencyContainer:
    """
    Builds the orchestrator and its collaborators from ``Config``.
    Provides lazy initialization and lifecycle management.
    """

    def __init__(self, config: Optional[Config] = None, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path
        self.config: Optional[Config] = config
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()
        self.container_id = str(uuid4())
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration if needed and register lazy instances."""
        if self.config is None:
            self.load_config()
        self._create_instances()
        self.is_running = True

        self.logger.debug(
            "Dependency container initialized",
            container_id=self.container_id,
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def load_config(self) -> None:
        """Load configuration from ``config_path`` or defaults."""
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

    def _create_instances(self) -> None:
        """Create lazy instances with current configuration."""
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")
        config = self.config

        # Import modules only when needed to avoid circular imports
        from menuquarry.crawler.http_client import HttpClient
        from menuquarry.extractor import ExtractorManager
        from menuquarry.quality import MenuValidator
        from menuquarry.rendering import PlaywrightRenderer
        from menuquarry.structuring import StructuringClient

        self._instances = {
            "http_client": LazyInstance(HttpClient, config.fetch),
            "structuring": LazyInstance(StructuringClient, config.structuring),
            "renderer": LazyInstance(
                PlaywrightRenderer, config.render, config.extraction, user_agent=config.fetch.user_agent
            ),
            "extractor": LazyInstance(ExtractorManager, config.extraction, config.ocr),
            "validator": LazyInstance(MenuValidator, config.validation, config.structuring.price_sentinel),
        }

    async def _get(self, name: str) -> Any:
        async with self._instances_lock:
            return await self._instances[name].get()

    async def get_http_client(self) -> HttpClient:
        """Get the HTTP client instance."""
        return await self._get("http_client")  # type: ignore[no-any-return]

    async def get_structuring_client(self) -> StructuringClient:
        """Get the structuring service client."""
        return await self._get("structuring")  # type: ignore[no-any-return]

    async def get_renderer(self) -> PlaywrightRenderer:
        return await self._get("renderer")  # type: ignore[no-any-return]

    async def get_extractor_manager(self) -> ExtractorManager:
        return await self._get("extractor")  # type: ignore[no-any-return]

    async def get_validator(self) -> MenuValidator:
        return await self._get("validator")  # type: ignore[no-any-return]

    async def get_discoverer(self) -> CandidateDiscoverer:
        from menuquarry.discovery import CandidateDiscoverer

        assert self.config is not None
        return CandidateDiscoverer(await self.get_http_client(), self.config.discovery, self.config.fetch)

    async def get_orchestrator(self) -> MenuOrchestrator:
        """Assemble a ``MenuOrchestrator`` from the managed collaborators."""
        from menuquarry.orchestrator import MenuOrchestrator

        assert self.config is not None
        return MenuOrchestrator(
            config=self.config,
            fetcher=await self.get_http_client(),
            discoverer=await self.get_discoverer(),
            extractor=await self.get_extractor_manager(),
            structurer=await self.get_structuring_client(),
            validator=await self.get_validator(),
            renderer=await self.get_renderer() if self.config.render.enabled else None,
        )

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close every instance that was created."""
        if not self.is_running:
            return
        await self._cleanup_instances()
        self.is_running = False
        self.logger.debug("Dependency container shutdown complete", container_id=self.container_id)

    async def _cleanup_instances(self) -> None:
        """Clean up all managed instances."""
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error(f"Error cleaning up {name}", error=str(e))

    def get_health_status(self) -> Dict[str, Any]:
        """Get health status of all managed components."""
        return {
            "container_id": self.container_id,
            "is_running": self.is_running,
            "config_loaded": self.config is not None,
            "instances_count": len(self._instances),
            "config_path": str(self.config_path) if self.config_path else None,
        }
