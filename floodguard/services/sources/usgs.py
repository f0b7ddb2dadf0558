import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from floodguard.core.constants import WATER_LEVEL_FALLBACK, WATER_LEVEL_PROVIDER
from floodguard.schemas.providers import UsgsResponse, extract_water_level
from floodguard.schemas.risk import AcquisitionContext
from floodguard.services.sources.base import SourceClient

logger = logging.getLogger(__name__)

GAGE_HEIGHT_PARAMETER = "00065"


class WaterLevelClient(SourceClient):
    """River gage height from the USGS instantaneous values service."""

    signal = "water_level"
    provider_name = WATER_LEVEL_PROVIDER
    fallback_value = WATER_LEVEL_FALLBACK
    response_schema = UsgsResponse

    def __init__(
        self,
        base_url: str,
        site: str,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self.site = site

    def build_request(self, context: AcquisitionContext) -> Tuple[str, Dict[str, Any]]:
        # Gauge is fixed by site id, not by the cycle location
        return "iv/", {
            "format": "json",
            "sites": self.site,
            "parameterCd": GAGE_HEIGHT_PARAMETER,
        }

    def extract(self, response: UsgsResponse) -> Optional[float]:
        level = extract_water_level(response)
        if level is not None:
            logger.info(f"Water Level: {level:.2f}m")
        return level
