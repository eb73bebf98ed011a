"""Checkpoint management for sampler state diagnosis."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class CheckpointManager:
    """
    Saves and loads Gibbs sampler checkpoints as JSON.

    Checkpoint format:
    {
        "checkpoint": {"sweep": 12, "topic_assignments": [...], ...},
        "reason": "NaN conditional at document 3, token 17",
        "timestamp": "2025-12-27T14:30:00.123456"
    }

    Usage:
        manager = CheckpointManager(run_dir / "_sampler_checkpoint.json")
        manager.save(error.checkpoint.to_dict(), reason=str(error))

        if manager.exists():
            data = manager.load()

        manager.cleanup()
    """

    def __init__(self, checkpoint_path: Path | str):
        """
        Initialize checkpoint manager.

        Args:
            checkpoint_path: Path to checkpoint file
        """
        self.checkpoint_path = Path(checkpoint_path)

    def save(self, checkpoint: Dict[str, Any], reason: Optional[str] = None) -> Path:
        """
        Write checkpoint to disk.

        Args:
            checkpoint: JSON-serializable sampler state
            reason: Optional description of why the checkpoint was written

        Returns:
            Path written
        """
        self.checkpoint_path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "checkpoint": checkpoint,
            "reason": reason,
            "timestamp": datetime.now().isoformat(),
        }

        with open(self.checkpoint_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)

        return self.checkpoint_path

    def load(self) -> Dict[str, Any]:
        """
        Load checkpoint data.

        Returns:
            Dict with "checkpoint", "reason" and "timestamp" keys

        Note: Returns an empty dict if the checkpoint doesn't exist
        """
        if not self.exists():
            return {}

        with open(self.checkpoint_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def exists(self) -> bool:
        """Check if checkpoint file exists."""
        return self.checkpoint_path.exists()

    def cleanup(self) -> None:
        """Delete checkpoint file."""
        if self.checkpoint_path.exists():
            self.checkpoint_path.unlink()
