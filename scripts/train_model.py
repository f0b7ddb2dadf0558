#!/usr/bin/env python3
"""
Train the flood risk network on synthetic samples and write the model artifact.
"""
import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from floodguard.core.config import settings
from floodguard.core.logging_config import setup_logging
from floodguard.ml.training import train_and_save

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Train the FloodGuard risk model")
    parser.add_argument("--model-dir", default=settings.model_dir)
    parser.add_argument("--epochs", type=int, default=100)
    parser.add_argument("--samples", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    setup_logging()
    logger.info(
        f"Training on {args.samples} synthetic samples for {args.epochs} epochs"
    )

    metadata = train_and_save(
        args.model_dir, epochs=args.epochs, samples=args.samples, seed=args.seed
    )

    print("\n" + "=" * 60)
    print(f"Model saved to {Path(args.model_dir).resolve()}")
    print(f"Final loss:            {metadata['final_loss']:.4f}")
    print(f"Final validation loss: {metadata['final_val_loss']:.4f}")
    print(f"Final validation MAE:  {metadata['final_val_mae']:.4f}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
