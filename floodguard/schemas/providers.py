"""
Response schemas for the external data providers.

Each provider gets an explicit schema for the slice of its payload we consume,
plus an extraction function returning the reading value or None when the
payload does not carry one.
"""

import math
from typing import List, Optional

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────────────────────────────
# OpenWeatherMap 5 day / 3 hour forecast
# ─────────────────────────────────────────────────────────────────────


class OwmRain(BaseModel):
    three_hours: Optional[float] = Field(default=None, alias="3h", allow_inf_nan=False)


class OwmForecastEntry(BaseModel):
    rain: Optional[OwmRain] = None
    pop: Optional[float] = Field(default=None, allow_inf_nan=False)


class OwmForecastResponse(BaseModel):
    entries: List[OwmForecastEntry] = Field(alias="list")


def extract_rainfall(response: OwmForecastResponse) -> Optional[float]:
    """Rainfall (mm) over the next 3h slot. A slot without rain means 0."""
    if not response.entries:
        return None
    first = response.entries[0]
    if first.rain is None or first.rain.three_hours is None:
        return 0.0
    return first.rain.three_hours


# ─────────────────────────────────────────────────────────────────────
# USGS instantaneous values (gage height)
# ─────────────────────────────────────────────────────────────────────


class UsgsPoint(BaseModel):
    value: Optional[str] = None


class UsgsValueBlock(BaseModel):
    value: List[UsgsPoint] = Field(default_factory=list)


class UsgsTimeSeries(BaseModel):
    values: List[UsgsValueBlock] = Field(default_factory=list)


class UsgsSeriesSet(BaseModel):
    time_series: List[UsgsTimeSeries] = Field(default_factory=list, alias="timeSeries")


class UsgsResponse(BaseModel):
    value: UsgsSeriesSet


def extract_water_level(response: UsgsResponse) -> Optional[float]:
    """Latest gage height of the first series."""
    series = response.value.time_series
    if not series or not series[0].values or not series[0].values[0].value:
        return None
    raw = series[0].values[0].value[0].value
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    # "NaN" and "inf" parse as floats
    return value if math.isfinite(value) else None


# ─────────────────────────────────────────────────────────────────────
# ISRIC SoilGrids properties query
# ─────────────────────────────────────────────────────────────────────


class SoilGridsValues(BaseModel):
    mean: Optional[float] = Field(default=None, allow_inf_nan=False)


class SoilGridsDepth(BaseModel):
    values: SoilGridsValues


class SoilGridsLayer(BaseModel):
    depths: List[SoilGridsDepth] = Field(default_factory=list)


class SoilGridsProperties(BaseModel):
    layers: List[SoilGridsLayer] = Field(default_factory=list)


class SoilGridsResponse(BaseModel):
    properties: SoilGridsProperties


def extract_soil_moisture(response: SoilGridsResponse) -> Optional[float]:
    """Mean of the top layer, rescaled from percent to a 0-1 fraction."""
    layers = response.properties.layers
    if not layers or not layers[0].depths:
        return None
    mean = layers[0].depths[0].values.mean
    if mean is None:
        return None
    return mean / 100
