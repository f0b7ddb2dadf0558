"""
Model artifact storage.

An artifact directory holds the topology descriptor (model.json), the weights
(weights.pt, a torch state_dict) and optional metadata (metadata.json).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import torch
import torch.nn as nn

from floodguard.core.constants import (
    MODEL_METADATA_FILE,
    MODEL_TOPOLOGY_FILE,
    MODEL_WEIGHTS_FILE,
)
from floodguard.core.exceptions import ConfigurationException, ModelLoadException
from floodguard.ml.network import build_network

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_artifact(path: PathLike) -> Tuple[Dict[str, Any], Dict[str, torch.Tensor]]:
    """Read (topology, weights) from an artifact directory.

    Raises:
        ModelLoadException: files are absent or cannot be decoded
    """
    model_dir = Path(path)
    topology_path = model_dir / MODEL_TOPOLOGY_FILE
    weights_path = model_dir / MODEL_WEIGHTS_FILE

    if not topology_path.is_file() or not weights_path.is_file():
        raise ModelLoadException(
            "Model artifact not found", {"path": str(model_dir.resolve())}
        )

    try:
        topology = json.loads(topology_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ModelLoadException(f"Unreadable model topology: {e}") from e
    if not isinstance(topology, dict):
        raise ModelLoadException("Model topology must be a JSON object")

    try:
        weights = torch.load(weights_path, map_location="cpu", weights_only=True)
    except Exception as e:
        raise ModelLoadException(f"Unreadable model weights: {e}") from e
    if not isinstance(weights, dict):
        raise ModelLoadException("Model weights must be a state_dict")

    return topology, weights


def save_artifact(
    path: PathLike,
    topology: Dict[str, Any],
    weights: Dict[str, torch.Tensor],
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Write an artifact directory, creating it if needed."""
    model_dir = Path(path)
    model_dir.mkdir(parents=True, exist_ok=True)

    (model_dir / MODEL_TOPOLOGY_FILE).write_text(
        json.dumps(topology, indent=2), encoding="utf-8"
    )
    torch.save(weights, model_dir / MODEL_WEIGHTS_FILE)
    if metadata is not None:
        (model_dir / MODEL_METADATA_FILE).write_text(
            json.dumps(metadata, indent=2), encoding="utf-8"
        )
    logger.info(f"Model artifact saved to {model_dir}")


def load_metadata(path: PathLike) -> Optional[Dict[str, Any]]:
    """Return the artifact metadata, or None when absent or unreadable."""
    metadata_path = Path(path) / MODEL_METADATA_FILE
    if not metadata_path.is_file():
        return None
    try:
        return json.loads(metadata_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable model metadata: {e}")
        return None


def load_network(path: PathLike) -> nn.Module:
    """Load an artifact and return the network in eval mode.

    Raises:
        ModelLoadException: artifact is absent, malformed, or weights do not fit
    """
    topology, weights = load_artifact(path)
    try:
        network = build_network(topology)
        network.load_state_dict(weights, strict=True)
    except ConfigurationException as e:
        raise ModelLoadException(e.message, e.details) from e
    except (RuntimeError, AttributeError, KeyError, TypeError, ValueError) as e:
        raise ModelLoadException(f"Model weights do not match topology: {e}") from e

    network.eval()
    return network
