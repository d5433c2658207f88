# src/traffic_sim/io/config.py
from pathlib import Path

from traffic_sim.config.models import ScenarioModel


def load_scenario(path: str | Path) -> ScenarioModel:
    """Validate a JSON scenario file. Raises pydantic.ValidationError on bad input."""
    return ScenarioModel.model_validate_json(Path(path).read_text(encoding="utf-8"))
