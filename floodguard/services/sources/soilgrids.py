import logging
from typing import Any, Dict, Optional, Tuple

from floodguard.core.constants import SOIL_MOISTURE_FALLBACK, SOIL_MOISTURE_PROVIDER
from floodguard.schemas.providers import SoilGridsResponse, extract_soil_moisture
from floodguard.schemas.risk import AcquisitionContext
from floodguard.services.sources.base import SourceClient

logger = logging.getLogger(__name__)


class SoilMoistureClient(SourceClient):
    """Topsoil water content from the ISRIC SoilGrids properties API."""

    signal = "soil_moisture"
    provider_name = SOIL_MOISTURE_PROVIDER
    fallback_value = SOIL_MOISTURE_FALLBACK
    response_schema = SoilGridsResponse

    def build_request(self, context: AcquisitionContext) -> Tuple[str, Dict[str, Any]]:
        return "properties/query", {
            "lon": context.lng,
            "lat": context.lat,
            "property": "wgssd",
            "depth": "0-5cm",
            "value": "mean",
        }

    def extract(self, response: SoilGridsResponse) -> Optional[float]:
        moisture = extract_soil_moisture(response)
        if moisture is not None:
            logger.info(f"Soil Moisture: {moisture * 100:.1f}%")
        return moisture
