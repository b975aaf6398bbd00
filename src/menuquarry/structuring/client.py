"""
Client for the external text-to-structured-menu service.

The service speaks the chat contract of a local model server: a POST with the
conversation and sampling options, answered by ``{"message": {"content": "<json>"}}``.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, Optional

import aiohttp
import structlog

from menuquarry.config.config import StructuringConfig
from menuquarry.errors import StructuringMalformed, StructuringUnreachable
from menuquarry.observability import histogram
from menuquarry.protocols import Menu

from .postprocess import post_process_menu, prepare_text
from .prompt import build_messages

logger = structlog.get_logger(__name__)


def parse_menu_json(content: str) -> Dict[str, Any]:
    """
    Parse the model's JSON object, salvaging it from surrounding chatter.

    Raises:
        StructuringMalformed: no JSON object can be recovered
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise StructuringMalformed("Structuring response is not JSON", detail=content[:200]) from None
        try:
            parsed = json.loads(content[start : end + 1])
        except json.JSONDecodeError as e:
            raise StructuringMalformed("Structuring response is not JSON", detail=str(e)) from e

    if not isinstance(parsed, dict):
        raise StructuringMalformed(
            "Structuring response is not a JSON object",
            detail=f"got {type(parsed).__name__}",
        )
    return parsed


class StructuringClient:
    """Sends menu text to the structuring service and returns a normalized ``Menu``."""

    def __init__(self, config: StructuringConfig, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> StructuringClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": build_messages(text, self.config.price_sentinel),
            "format": "json",
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "seed": self.config.seed,
                "num_ctx": self.config.context_window,
            },
        }

    async def _post(self, payload: Dict[str, Any]) -> str:
        if self.session is None:
            await self.initialize()
        assert self.session is not None

        endpoint = self.config.endpoint
        try:
            async with asyncio.timeout(self.config.timeout):
                async with self.session.post(endpoint, json=payload) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        raise StructuringUnreachable(
                            f"Structuring service returned HTTP {response.status}",
                            detail=body[:200] or None,
                            url=endpoint,
                        )
                    return await response.text()
        except TimeoutError as e:
            raise StructuringUnreachable(
                f"Structuring service timed out after {self.config.timeout}s", url=endpoint
            ) from e
        except aiohttp.ClientError as e:
            raise StructuringUnreachable("Structuring service unreachable", detail=str(e), url=endpoint) from e

    async def structure(self, text: str) -> Menu:
        """
        Structure free menu text.

        Raises:
            StructuringUnreachable: connection, DNS, timeout or non-2xx failure
            StructuringMalformed: the answer does not contain a JSON object
        """
        prepared = prepare_text(text, self.config.max_chars)
        start_time = time.time()
        body = await self._post(self.build_payload(prepared))
        histogram("structuring_latency_seconds", time.time() - start_time)

        try:
            envelope = json.loads(body)
        except json.JSONDecodeError as e:
            raise StructuringMalformed("Structuring service answered with invalid JSON", detail=body[:200]) from e

        message = envelope.get("message") if isinstance(envelope, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise StructuringMalformed("Structuring response has no message content", detail=body[:200])

        menu = post_process_menu(parse_menu_json(content), self.config.price_sentinel)
        logger.debug(
            "Menu structured",
            input_length=len(text),
            sent_length=len(prepared),
            items=len(menu),
            latency=time.time() - start_time,
        )
        return menu
