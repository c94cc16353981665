import json
from pathlib import Path

import yaml

from deployment.constants import ARTIFACTS_DIR


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def registry_filepath_from_plan(plan_name: str) -> Path:
    """Default registry artifact for a deployment plan."""
    return ARTIFACTS_DIR / f"{plan_name.replace('-', '_')}.json"
