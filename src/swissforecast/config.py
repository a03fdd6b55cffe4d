"""Tunable limits and weights of the pairing engines."""

# Swiss Forecast
# Copyright (C) 2025  Swiss Forecast developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from swissforecast.constants import (
    CURRENT_BRACKET_WEIGHT,
    DEFAULT_JAVA_PATH,
    DEFAULT_PREFERENCE_WEIGHTS,
    DOWNFLOATER_WINDOW,
    EXHAUSTIVE_SEARCH_LIMIT,
    HETEROGENEOUS_MAX_DOWNFLOATERS,
    HETEROGENEOUS_MAX_NATIVES,
    HETEROGENEOUS_NATIVE_WINDOW,
    LOCAL_SEARCH_PASS_FACTOR,
    MAX_COMBINATIONS,
    MAX_PERMUTATIONS,
    NEXT_BRACKET_COLOUR_WEIGHT,
    NO_FIT_PENALTY,
    REPAIR_NODE_LIMIT,
    REPEAT_PAIRING_PENALTY,
)
from swissforecast.exceptions import ConfigurationException
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class PairingConfig:
    """Configuration shared by the built-in and the external engine.

    The defaults reproduce the published behaviour of the predictor; they
    are exposed only so that experiments and tests can vary them.
    """

    # Bracket search
    exhaustive_search_limit: int = EXHAUSTIVE_SEARCH_LIMIT
    max_permutations: int = MAX_PERMUTATIONS
    max_combinations: int = MAX_COMBINATIONS
    local_search_pass_factor: int = LOCAL_SEARCH_PASS_FACTOR
    repeat_pairing_penalty: int = REPEAT_PAIRING_PENALTY
    preference_weights: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_PREFERENCE_WEIGHTS)
    )

    # Heterogeneous brackets
    heterogeneous_max_downfloaters: int = HETEROGENEOUS_MAX_DOWNFLOATERS
    heterogeneous_max_natives: int = HETEROGENEOUS_MAX_NATIVES
    heterogeneous_native_window: int = HETEROGENEOUS_NATIVE_WINDOW

    # Downfloater lookahead
    downfloater_window: int = DOWNFLOATER_WINDOW
    current_bracket_weight: int = CURRENT_BRACKET_WEIGHT
    next_bracket_colour_weight: int = NEXT_BRACKET_COLOUR_WEIGHT
    no_fit_penalty: int = NO_FIT_PENALTY

    # Leftover repair
    repair_node_limit: int = REPAIR_NODE_LIMIT

    # Wall-clock budget of one prediction in seconds, None for unlimited
    time_budget: Optional[float] = None

    # External engine
    java_path: str = DEFAULT_JAVA_PATH
    javafo_jar: Optional[str] = None
    javafo_timeout: Optional[float] = 60.0

    def __post_init__(self) -> None:
        for name in (
            "exhaustive_search_limit",
            "max_permutations",
            "max_combinations",
            "local_search_pass_factor",
            "downfloater_window",
            "repair_node_limit",
        ):
            if getattr(self, name) < 1:
                raise ConfigurationException(f"{name} must be at least 1")
        if self.time_budget is not None and self.time_budget <= 0:
            raise ConfigurationException("time_budget must be positive")

    def preference_weight(self, strength: Optional[str]) -> int:
        """Weight of a colour preference strength, 0 for no preference."""
        if strength is None:
            return 0
        return self.preference_weights.get(strength, 0)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PairingConfig":
        """Create a configuration, ignoring unknown keys with a warning.

        Raises:
            ConfigurationException: If a value has the wrong type or range
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key %r", key)
                continue
            values[key] = value
        if "preference_weights" in values:
            weights = dict(DEFAULT_PREFERENCE_WEIGHTS)
            weights.update(values["preference_weights"] or {})
            values["preference_weights"] = weights
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigurationException(f"Invalid configuration: {e}") from e


def load_config(path: Union[str, Path, None] = None) -> PairingConfig:
    """Load a JSON configuration file.

    Args:
        path: File to read; None returns the defaults

    Returns:
        The configuration

    Raises:
        ConfigurationException: If the file is unreadable or not valid JSON
    """
    if path is None:
        return PairingConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationException(f"Cannot load configuration {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationException(f"Configuration {path} must be a JSON object")
    logger.info("Loaded configuration from %s", path)
    return PairingConfig.from_dict(data)
