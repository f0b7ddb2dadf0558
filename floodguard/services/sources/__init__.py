"""
External data source clients.
"""

from floodguard.core.config import Settings
from floodguard.services.sources.base import SourceClient
from floodguard.services.sources.openweather import RainfallClient
from floodguard.services.sources.soilgrids import SoilMoistureClient
from floodguard.services.sources.usgs import WaterLevelClient


def build_source_clients(settings: Settings):
    """Create the rainfall, water level and soil moisture clients."""
    return (
        RainfallClient(
            settings.owm_base_url, settings.owm_key, timeout=settings.rainfall_timeout
        ),
        WaterLevelClient(
            settings.usgs_base_url,
            settings.usgs_site,
            timeout=settings.water_level_timeout,
        ),
        SoilMoistureClient(
            settings.soilgrids_base_url, timeout=settings.soil_moisture_timeout
        ),
    )


__all__ = [
    "SourceClient",
    "RainfallClient",
    "WaterLevelClient",
    "SoilMoistureClient",
    "build_source_clients",
]
