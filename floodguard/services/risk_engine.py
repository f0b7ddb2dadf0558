"""
Flood risk scoring.

Scores come from the trained network when its artifact loads, otherwise from
a fixed rule-based heuristic. Both paths yield an integer in [0, 100].
"""

import logging
import math
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

import torch

from floodguard.core.config import settings
from floodguard.core.constants import (
    PLACEHOLDER_FEATURE,
    RAINFALL_SCALE,
    WATER_LEVEL_SCALE,
)
from floodguard.core.exceptions import InferenceException, ModelLoadException
from floodguard.core.monitoring import record_score
from floodguard.ml.artifact import load_network
from floodguard.schemas.risk import RiskLevel, ScoringMode, classify_risk

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


def heuristic_score(rainfall: float, water_level: float, soil_moisture: float) -> int:
    """Rule-based flood risk score.

    Points per signal are summed, multiplied by 1.3 (capped at 100) when all
    three signals are elevated at once, then rounded and clamped to [0, 100].
    """
    score = 0.0

    if rainfall > 50:
        score += 45
    elif rainfall > 30:
        score += 38
    elif rainfall > 20:
        score += 28
    elif rainfall > 10:
        score += 18
    elif rainfall > 5:
        score += 10
    else:
        score += rainfall

    if water_level > 5:
        score += 35
    elif water_level > 4:
        score += 28
    elif water_level > 3:
        score += 20
    elif water_level > 2.5:
        score += 12
    elif water_level > 2:
        score += 5

    if soil_moisture > 0.9:
        score += 20
    elif soil_moisture > 0.8:
        score += 16
    elif soil_moisture > 0.7:
        score += 12
    elif soil_moisture > 0.6:
        score += 8
    elif soil_moisture > 0.5:
        score += 4

    # Compound risk
    if rainfall > 20 and water_level > 3 and soil_moisture > 0.7:
        score = min(score * 1.3, 100)

    return clamp_score(round_half_up(score))


def build_features(rainfall: float, water_level: float, soil_moisture: float) -> torch.Tensor:
    """Network input vector in training order, shape (1, 5)."""
    return torch.tensor(
        [
            [
                rainfall / RAINFALL_SCALE,
                soil_moisture,
                water_level / WATER_LEVEL_SCALE,
                PLACEHOLDER_FEATURE,
                PLACEHOLDER_FEATURE,
            ]
        ],
        dtype=torch.float32,
    )


@dataclass(frozen=True)
class ModelState:
    """Snapshot of the engine's model lifecycle."""

    model_path: str
    attempted: bool = False
    loaded: bool = False
    mode: ScoringMode = ScoringMode.HEURISTIC
    inference_failures: int = 0
    load_error: Optional[str] = None


@dataclass(frozen=True)
class RiskScore:
    value: int
    mode: ScoringMode

    @property
    def level(self) -> RiskLevel:
        return classify_risk(self.value)


class RiskEngine:
    """
    Turns (rainfall, water level, soil moisture) into a 0-100 risk score.

    The model artifact is loaded once, on first use. A failed load leaves the
    engine in heuristic mode for the life of the process; a failed inference
    falls back to the heuristic for that call only.
    """

    def __init__(self, model_dir: Union[str, Path]):
        self._model_dir = Path(model_dir)
        self._lock = threading.Lock()
        self._network: Optional[torch.nn.Module] = None
        self._state = ModelState(model_path=str(self._model_dir))

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def mode(self) -> ScoringMode:
        return self._state.mode

    def score(self, rainfall: float, water_level: float, soil_moisture: float) -> int:
        """Return the integer risk score in [0, 100]."""
        return self.assess(rainfall, water_level, soil_moisture).value

    def assess(self, rainfall: float, water_level: float, soil_moisture: float) -> RiskScore:
        """Score the inputs and report which path produced the value."""
        self._ensure_loaded()

        result: Optional[RiskScore] = None
        if self._network is not None:
            try:
                result = RiskScore(
                    self._infer(rainfall, water_level, soil_moisture), ScoringMode.MODEL
                )
            except InferenceException as e:
                self._record_inference_failure()
                logger.warning(f"Model inference failed, using heuristic: {e.message}")

        if result is None:
            result = RiskScore(
                heuristic_score(rainfall, water_level, soil_moisture),
                ScoringMode.HEURISTIC,
            )

        record_score(result.value, result.mode.value)
        logger.debug(
            f"Scored rainfall={rainfall} water_level={water_level} "
            f"soil_moisture={soil_moisture} -> {result.value} ({result.mode.value})"
        )
        return result

    def _ensure_loaded(self) -> None:
        if self._state.attempted:
            return
        with self._lock:
            if self._state.attempted:
                return
            try:
                network = load_network(self._model_dir)
            except ModelLoadException as e:
                logger.warning(
                    f"AI model unavailable at {self._model_dir}, using heuristic: {e.message}"
                )
                self._state = replace(self._state, attempted=True, load_error=e.message)
                return
            except Exception as e:
                logger.error(
                    f"Unexpected error loading AI model from {self._model_dir}, using heuristic: {e}",
                    exc_info=True,
                )
                self._state = replace(self._state, attempted=True, load_error=str(e))
                return

            self._network = network
            self._state = replace(
                self._state, attempted=True, loaded=True, mode=ScoringMode.MODEL
            )
            logger.info(f"AI model loaded from {self._model_dir}")

    def _infer(self, rainfall: float, water_level: float, soil_moisture: float) -> int:
        try:
            with torch.no_grad():
                output = self._network(build_features(rainfall, water_level, soil_moisture))
            probability = float(output.reshape(-1)[0].item())
        except Exception as e:
            raise InferenceException(f"forward pass failed: {e}") from e

        if math.isnan(probability):
            raise InferenceException("model produced NaN")
        return clamp_score(round_half_up(probability * 100))

    def _record_inference_failure(self) -> None:
        with self._lock:
            self._state = replace(
                self._state, inference_failures=self._state.inference_failures + 1
            )


risk_engine = RiskEngine(settings.model_dir)

__all__ = [
    "ModelState",
    "RiskEngine",
    "RiskScore",
    "classify_risk",
    "heuristic_score",
    "risk_engine",
]
