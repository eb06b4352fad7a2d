"""
Parameter Store: Infrastructure adapter for per-user parameter files.

Persists SchedulerParameters as JSON or YAML (picked by file suffix) using
the camelCase field names, so files written elsewhere load unchanged.
"""

import json
import logging
from pathlib import Path

import yaml  # type: ignore

from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


class ParameterStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in _YAML_SUFFIXES

    def load(self) -> SchedulerParameters:
        """
        Read the stored parameters.

        Returns:
            The stored parameters, or the defaults when the file does not exist.

        Raises:
            ValueError: If the file is unreadable or holds an invalid vector.
        """
        if not self.path.exists():
            logger.debug(f"No parameter file at {self.path}; using defaults")
            return DEFAULT_PARAMETERS

        text = self.path.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(text) if self.is_yaml else json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"{self.path}: could not parse parameters: {e}") from e

        if data is None:
            return DEFAULT_PARAMETERS
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a mapping of parameter fields")
        return SchedulerParameters.model_validate(data)

    def save(self, params: SchedulerParameters) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.is_yaml:
            data = params.model_dump(mode="json", by_alias=True)
            text = yaml.safe_dump(data, sort_keys=False, default_flow_style=None)
        else:
            text = params.to_json() + "\n"
        self.path.write_text(text, encoding="utf-8")
        logger.info(f"Saved parameters to {self.path}")
