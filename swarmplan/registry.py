"""Persistent record of reconciliation progress, one JSON file per cluster."""
import json
import os
from pathlib import Path

from .config import Config


def state_path(cluster: str, environment: str, state_dir: str = None) -> Path:
    return Path(state_dir or Config.STATE_DIR) / f"{environment}-{cluster}.json"


def load_state(path: Path) -> dict:
    if path.exists():
        with open(path, "r") as f:
            return json.load(f)
    return {"fingerprint": None, "completed": []}


def save_state(path: Path, data: dict) -> None:
    os.makedirs(path.parent, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
