"""
Training pipeline for the flood risk network.

Labels come from a synthetic rule over rainfall, water level and soil
moisture; the network learns to reproduce it from normalized features.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
import torch
from torch.utils.data import DataLoader, TensorDataset, random_split

from floodguard.core.constants import RAINFALL_SCALE, WATER_LEVEL_SCALE
from floodguard.ml.artifact import save_artifact
from floodguard.ml.network import DEFAULT_TOPOLOGY, INPUT_FEATURES, build_network

logger = logging.getLogger(__name__)


def synthetic_label(rainfall: float, water_level: float, soil_moisture: float) -> float:
    """Flood probability in [0, 1] for one synthetic sample."""
    probability = 0.0

    if rainfall > 40:
        probability += 0.5
    elif rainfall > 25:
        probability += 0.35
    elif rainfall > 15:
        probability += 0.2
    else:
        probability += rainfall / 100

    if water_level > 4.5:
        probability += 0.4
    elif water_level > 3.5:
        probability += 0.25
    elif water_level > 2.5:
        probability += 0.15
    else:
        probability += water_level / 30

    if soil_moisture > 0.85:
        probability += 0.25
    elif soil_moisture > 0.7:
        probability += 0.15
    else:
        probability += soil_moisture / 10

    if rainfall > 30 and water_level > 4 and soil_moisture > 0.8:
        probability = min(probability * 1.4, 1.0)

    return min(probability, 1.0)


def generate_samples(
    count: int = 1000, seed: Optional[int] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Draw (features, labels) arrays for training.

    Features follow the inference layout: rainfall/50, soil moisture,
    water level/6 and two small noise features.
    """
    rng = np.random.default_rng(seed)
    features = np.zeros((count, len(INPUT_FEATURES)), dtype=np.float32)
    labels = np.zeros((count, 1), dtype=np.float32)

    for i in range(count):
        rainfall = rng.random() * 60
        water_level = rng.random() * 6
        soil_moisture = rng.random()

        features[i] = [
            rainfall / RAINFALL_SCALE,
            soil_moisture,
            water_level / WATER_LEVEL_SCALE,
            rng.random() * 0.1,
            rng.random() * 0.1,
        ]
        labels[i, 0] = synthetic_label(rainfall, water_level, soil_moisture)

    return features, labels


def create_data_loaders(
    features: np.ndarray,
    labels: np.ndarray,
    batch_size: int = 32,
    validation_split: float = 0.2,
    seed: Optional[int] = None,
) -> Tuple[DataLoader, DataLoader]:
    """Shuffle-split samples into training and validation loaders."""
    dataset = TensorDataset(torch.from_numpy(features), torch.from_numpy(labels))
    val_size = max(1, int(len(dataset) * validation_split))
    train_size = len(dataset) - val_size

    generator = torch.Generator()
    if seed is not None:
        generator.manual_seed(seed)
    train_set, val_set = random_split(dataset, [train_size, val_size], generator=generator)

    train_loader = DataLoader(train_set, batch_size=batch_size, shuffle=True, generator=generator)
    val_loader = DataLoader(val_set, batch_size=batch_size, shuffle=False)
    return train_loader, val_loader


def train_epoch(
    model: torch.nn.Module,
    train_loader: DataLoader,
    optimizer: torch.optim.Optimizer,
    loss_fn: Callable,
) -> float:
    """Run one epoch of gradient updates and return the mean loss."""
    model.train()
    total_loss = 0.0

    for inputs, targets in train_loader:
        optimizer.zero_grad()
        loss = loss_fn(model(inputs), targets)
        loss.backward()
        optimizer.step()
        total_loss += loss.item()

    return total_loss / len(train_loader)


def validate_epoch(
    model: torch.nn.Module, val_loader: DataLoader, loss_fn: Callable
) -> Tuple[float, float]:
    """Return (mean loss, mean absolute error) over the validation set."""
    model.eval()
    total_loss = 0.0
    total_mae = 0.0

    with torch.no_grad():
        for inputs, targets in val_loader:
            outputs = model(inputs)
            total_loss += loss_fn(outputs, targets).item()
            total_mae += torch.mean(torch.abs(outputs - targets)).item()

    return total_loss / len(val_loader), total_mae / len(val_loader)


def train_network(
    epochs: int = 100,
    samples: int = 1000,
    batch_size: int = 32,
    learning_rate: float = 0.001,
    validation_split: float = 0.2,
    seed: Optional[int] = None,
    topology: Optional[Dict[str, Any]] = None,
) -> Tuple[torch.nn.Module, Dict[str, List[float]]]:
    """Train a fresh network on synthetic samples.

    Returns:
        Tuple of (trained model in eval mode, history dict of per-epoch metrics)
    """
    if seed is not None:
        torch.manual_seed(seed)

    model = build_network(topology or DEFAULT_TOPOLOGY)
    features, labels = generate_samples(samples, seed=seed)
    train_loader, val_loader = create_data_loaders(
        features, labels, batch_size=batch_size, validation_split=validation_split, seed=seed
    )

    optimizer = torch.optim.Adam(model.parameters(), lr=learning_rate)
    loss_fn = torch.nn.MSELoss()
    history: Dict[str, List[float]] = {"loss": [], "val_loss": [], "val_mae": []}

    for epoch in range(epochs):
        train_loss = train_epoch(model, train_loader, optimizer, loss_fn)
        val_loss, val_mae = validate_epoch(model, val_loader, loss_fn)
        history["loss"].append(train_loss)
        history["val_loss"].append(val_loss)
        history["val_mae"].append(val_mae)

        if (epoch + 1) % 10 == 0 or epoch + 1 == epochs:
            logger.info(
                f"Epoch [{epoch + 1}/{epochs}] loss={train_loss:.4f} "
                f"val_loss={val_loss:.4f} val_mae={val_mae:.4f}"
            )

    model.eval()
    return model, history


def train_and_save(
    model_dir: Union[str, Path],
    epochs: int = 100,
    samples: int = 1000,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """Train a network and write it as an artifact. Returns the metadata."""
    topology = dict(DEFAULT_TOPOLOGY)
    model, history = train_network(epochs=epochs, samples=samples, seed=seed, topology=topology)

    metadata = {
        "version": "1.0.0",
        "trained_at": datetime.now(timezone.utc).isoformat(),
        "input_features": INPUT_FEATURES,
        "output": "flood_probability",
        "training_samples": samples,
        "epochs": epochs,
        "final_loss": history["loss"][-1] if history["loss"] else None,
        "final_val_loss": history["val_loss"][-1] if history["val_loss"] else None,
        "final_val_mae": history["val_mae"][-1] if history["val_mae"] else None,
    }
    save_artifact(model_dir, topology, model.state_dict(), metadata)
    return metadata
