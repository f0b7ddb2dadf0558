import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from floodguard.core.constants import RAINFALL_FALLBACK, RAINFALL_PROVIDER
from floodguard.schemas.providers import OwmForecastResponse, extract_rainfall
from floodguard.schemas.risk import AcquisitionContext
from floodguard.services.sources.base import SourceClient

logger = logging.getLogger(__name__)


class RainfallClient(SourceClient):
    """3h rainfall from the OpenWeatherMap forecast API."""

    signal = "rainfall"
    provider_name = RAINFALL_PROVIDER
    fallback_value = RAINFALL_FALLBACK
    response_schema = OwmForecastResponse

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self.api_key = api_key

    def build_request(self, context: AcquisitionContext) -> Tuple[str, Dict[str, Any]]:
        params = {"lat": context.lat, "lon": context.lng, "units": "metric"}
        if self.api_key:
            params["appid"] = self.api_key
        return "forecast", params

    def extract(self, response: OwmForecastResponse) -> Optional[float]:
        rainfall = extract_rainfall(response)
        if rainfall is not None:
            pop = response.entries[0].pop
            pop_text = f"{pop * 100:.1f}%" if pop is not None else "n/a"
            logger.info(f"Rainfall: {rainfall:.2f}mm (3h) | PoP: {pop_text}")
        return rainfall
