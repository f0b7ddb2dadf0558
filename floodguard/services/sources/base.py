"""
Base class for external data source clients.

A source client never raises from fetch(): any provider problem degrades the
signal to the client's fallback constant.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, ValidationError

from floodguard.core.constants import FALLBACK_SOURCE
from floodguard.core.exceptions import SourceUnavailableException
from floodguard.core.monitoring import record_source_fetch
from floodguard.schemas.risk import AcquisitionContext, Reading

logger = logging.getLogger(__name__)


class SourceClient(ABC):
    """Fetches one signal from one provider."""

    signal: str
    provider_name: str
    fallback_value: float
    response_schema: Type[BaseModel]

    def __init__(
        self,
        base_url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Provider API root
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @abstractmethod
    def build_request(self, context: AcquisitionContext) -> Tuple[str, Dict[str, Any]]:
        """Return (path, query params) for this provider."""

    @abstractmethod
    def extract(self, response: BaseModel) -> Optional[float]:
        """Pull the reading value out of a validated response."""

    async def fetch(self, context: AcquisitionContext) -> Reading:
        """Fetch a reading, falling back to the fixed constant on any failure."""
        try:
            value = await self._fetch_value(context)
        except SourceUnavailableException as e:
            logger.warning(
                f"{self.provider_name} failed, using fallback {self.fallback_value}: {e.message}"
            )
            record_source_fetch(self.signal, success=False)
            return Reading(value=self.fallback_value, source=FALLBACK_SOURCE)
        except Exception as e:
            logger.error(
                f"Unexpected {self.provider_name} error, using fallback: {e}",
                exc_info=True,
            )
            record_source_fetch(self.signal, success=False)
            return Reading(value=self.fallback_value, source=FALLBACK_SOURCE)

        record_source_fetch(self.signal, success=True)
        return Reading(value=value, source=self.provider_name)

    async def _fetch_value(self, context: AcquisitionContext) -> float:
        path, params = self.build_request(context)
        url = f"{self.base_url}/{path.lstrip('/')}"

        # A fresh client per call: every cycle runs in its own event loop
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                logger.debug(f"{self.provider_name} request: GET {url}")
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.TimeoutException as e:
            raise SourceUnavailableException(
                f"timed out after {self.timeout}s", {"url": url}
            ) from e
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableException(
                f"HTTP {e.response.status_code}", {"url": url}
            ) from e
        except httpx.HTTPError as e:
            raise SourceUnavailableException(f"request error: {e}", {"url": url}) from e
        except ValueError as e:
            raise SourceUnavailableException("invalid JSON response", {"url": url}) from e

        try:
            parsed = self.response_schema.model_validate(payload)
        except ValidationError as e:
            raise SourceUnavailableException(
                "malformed response", {"errors": e.error_count()}
            ) from e

        value = self.extract(parsed)
        if value is None:
            raise SourceUnavailableException("response carried no reading")
        return value
