"""
Feed-forward flood risk network built from a JSON topology descriptor.
"""

from typing import Any, Dict, List

import torch.nn as nn

from floodguard.core.constants import MODEL_FORMAT
from floodguard.core.exceptions import ConfigurationException

ACTIVATIONS = {
    "relu": nn.ReLU,
    "sigmoid": nn.Sigmoid,
    "linear": None,
}

# rainfall/50, soil moisture, water level/6 and two placeholder features
INPUT_FEATURES = ["rainfall", "soil_moisture", "water_level", "feature4", "feature5"]

DEFAULT_TOPOLOGY: Dict[str, Any] = {
    "format": MODEL_FORMAT,
    "input_size": len(INPUT_FEATURES),
    "layers": [
        {"type": "dense", "units": 32, "activation": "relu"},
        {"type": "dropout", "rate": 0.2},
        {"type": "dense", "units": 16, "activation": "relu"},
        {"type": "dropout", "rate": 0.1},
        {"type": "dense", "units": 8, "activation": "relu"},
        {"type": "dense", "units": 1, "activation": "sigmoid"},
    ],
}


def build_network(topology: Dict[str, Any]) -> nn.Sequential:
    """Instantiate an untrained network from its topology descriptor.

    Args:
        topology: Descriptor with ``format``, ``input_size`` and ``layers``

    Returns:
        Sequential module whose state_dict keys match the saved weights

    Raises:
        ConfigurationException: descriptor is not a supported topology
    """
    if not isinstance(topology, dict) or topology.get("format") != MODEL_FORMAT:
        raise ConfigurationException(
            "Unsupported model topology format",
            {"format": topology.get("format") if isinstance(topology, dict) else None},
        )

    try:
        in_features = int(topology["input_size"])
        layer_specs: List[Dict[str, Any]] = list(topology["layers"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationException(f"Invalid model topology: {e}") from e

    modules: List[nn.Module] = []
    for spec in layer_specs:
        if not isinstance(spec, dict):
            raise ConfigurationException(f"Invalid layer descriptor: {spec!r}")
        kind = spec.get("type")
        if kind == "dense":
            units = int(spec["units"])
            modules.append(nn.Linear(in_features, units))
            activation = spec.get("activation", "linear")
            if activation not in ACTIVATIONS:
                raise ConfigurationException(f"Unsupported activation: {activation}")
            if ACTIVATIONS[activation] is not None:
                modules.append(ACTIVATIONS[activation]())
            in_features = units
        elif kind == "dropout":
            modules.append(nn.Dropout(float(spec["rate"])))
        else:
            raise ConfigurationException(f"Unsupported layer type: {kind}")

    if not modules:
        raise ConfigurationException("Model topology has no layers")

    return nn.Sequential(*modules)
