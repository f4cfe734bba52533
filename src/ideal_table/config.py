"""Run configuration save/load functionality."""

import json
from pathlib import Path

from .algorithm import AnnealParams
from .models import Condition


def save_params(params: AnnealParams, path: str | Path) -> None:
    """Save annealing parameters to a JSON file."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(params.to_dict(), f, indent=2, ensure_ascii=False)


def load_params(path: str | Path) -> AnnealParams:
    """Load annealing parameters from a JSON file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return AnnealParams.from_dict(data)


def save_condition(condition: Condition, path: str | Path) -> None:
    """Save the relation penalty and tag constraint to a JSON file."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(condition.to_dict(), f, indent=2, ensure_ascii=False)


def load_condition(path: str | Path) -> Condition:
    """Load the relation penalty and tag constraint from a JSON file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return Condition.from_dict(data)
