from floodguard.ml.artifact import load_artifact, load_network, save_artifact
from floodguard.ml.network import DEFAULT_TOPOLOGY, build_network

__all__ = [
    "DEFAULT_TOPOLOGY",
    "build_network",
    "load_artifact",
    "load_network",
    "save_artifact",
]
