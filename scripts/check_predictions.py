#!/usr/bin/env python3
"""
Score reference scenarios with the risk engine and compare against the
expected risk level.
"""
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from floodguard.core.config import settings
from floodguard.ml.artifact import load_metadata
from floodguard.services.risk_engine import RiskEngine

# (name, rainfall mm, soil moisture, water level m, expected level)
SCENARIOS = [
    ("Clear Day", 5, 0.3, 1.5, "low"),
    ("Light Rain", 10, 0.4, 2.0, "low"),
    ("Moderate", 25, 0.7, 3.2, "medium"),
    ("High Soil Moisture", 20, 0.85, 3.0, "medium"),
    ("Heavy Rain", 45, 0.7, 4.2, "high"),
    ("Extreme", 55, 0.9, 5.0, "high"),
]


def main(model_dir: str = None) -> int:
    model_dir = model_dir or settings.model_dir
    engine = RiskEngine(model_dir)

    print("\n" + "=" * 60)
    print("FloodGuard Prediction Check")
    print("=" * 60 + "\n")

    mismatches = 0
    for name, rain, soil, water, expected in SCENARIOS:
        score = engine.assess(rain, water, soil)
        marker = "OK " if score.level.value == expected else "!! "
        if score.level.value != expected:
            mismatches += 1
        print(f"{marker}{name}:")
        print(f"    Input:  Rain={rain}mm | Water={water}m | Soil={soil * 100:.0f}%")
        print(
            f"    Result: {score.value}% ({score.level.value.upper()}) "
            f"[{score.mode.value}], expected {expected.upper()}"
        )

    state = engine.state
    print("\n" + "-" * 60)
    print(f"Scoring mode: {state.mode.value}")
    if state.load_error:
        print(f"Model load error: {state.load_error}")
    metadata = load_metadata(model_dir)
    if metadata:
        print(f"Model trained at: {metadata.get('trained_at')}")
    print(f"Mismatches: {mismatches}/{len(SCENARIOS)}")
    print("=" * 60 + "\n")
    return 1 if mismatches else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
