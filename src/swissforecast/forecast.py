"""Forecast a round of a tournament and gather what a front end shows with it."""

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

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from swissforecast.constants import MODE_COMPLETED, MODE_PREDICTIONS
from swissforecast.exceptions import InvalidRoundException
from swissforecast.pairing import DutchSwissEngine
from swissforecast.tournament.models import (
    PredictionResult,
    TournamentInfo,
    TournamentState,
)
from swissforecast.tournament.rewind import actual_pool_for_round, rewind_to_round
from swissforecast.tournament.standings import (
    HistoryEntry,
    StandingEntry,
    build_player_history,
    build_standings,
)
from swissforecast.type_hints import Pool
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


class PairingEngine(Protocol):
    """What the forecast needs from a pairing engine."""

    name: str

    def predict(
        self,
        state: TournamentState,
        pool: Pool = None,
        target_round: Optional[int] = None,
    ) -> PredictionResult: ...


@dataclass
class ForecastReport:
    """Everything known about one forecast request.

    Attributes:
        info: Tournament metadata as supplied
        mode: "predictions", or "completed" when there is nothing to predict
        prediction: The predicted round, None in "completed" mode
        standings: Standings before the predicted round
        histories: Per-player round history before the predicted round
        actual_pool_size: Players of the recorded round, when one was used
        is_not_started: No round has been played yet
    """

    info: TournamentInfo
    mode: str
    prediction: Optional[PredictionResult] = None
    standings: List[StandingEntry] = field(default_factory=list)
    histories: Dict[int, List[HistoryEntry]] = field(default_factory=dict)
    actual_pool_size: Optional[int] = None
    is_not_started: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to a JSON-safe dictionary."""
        return {
            "mode": self.mode,
            "tournament": self.info.to_dict(),
            "is_completed": self.info.is_completed,
            "is_not_started": self.is_not_started,
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "standings": [entry.to_dict() for entry in self.standings],
            "histories": {
                str(no): [entry.to_dict() for entry in entries]
                for no, entries in self.histories.items()
            },
            "actual_pool_size": self.actual_pool_size,
        }


def forecast_round(
    state: TournamentState,
    target_round: Optional[int] = None,
    engine: Optional[PairingEngine] = None,
) -> ForecastReport:
    """Predict a round and collect standings and histories alongside it.

    Args:
        state: Full tournament state
        target_round: Historical round to predict; None predicts the next
            round, or nothing if the tournament is over
        engine: Pairing engine, defaults to the built-in Dutch engine

    Returns:
        The forecast report

    Raises:
        InvalidRoundException: If target_round is outside the tournament
    """
    engine = engine or DutchSwissEngine()
    info = state.info
    is_not_started = info.completed_rounds == 0 and not state.rounds

    if target_round is None:
        if info.is_completed:
            logger.info("%s is completed, nothing to predict", info.name)
            return ForecastReport(
                info=info,
                mode=MODE_COMPLETED,
                standings=build_standings(state),
                histories=build_player_history(state),
            )
        prediction = engine.predict(state)
        return ForecastReport(
            info=info,
            mode=MODE_PREDICTIONS,
            prediction=prediction,
            standings=build_standings(state),
            histories=build_player_history(state),
            is_not_started=is_not_started,
        )

    if target_round < 1 or (info.total_rounds > 0 and target_round > info.total_rounds):
        raise InvalidRoundException(
            f"Round must be between 1 and {info.total_rounds}, got {target_round}"
        )

    pool = actual_pool_for_round(state, target_round)
    rewound = rewind_to_round(state, target_round)
    prediction = engine.predict(state, pool, target_round=target_round)
    logger.info(
        "Forecast of %s round %d with %s engine", info.name, target_round, engine.name
    )
    return ForecastReport(
        info=info,
        mode=MODE_PREDICTIONS,
        prediction=prediction,
        standings=build_standings(rewound),
        histories=build_player_history(rewound),
        actual_pool_size=len(pool) if pool is not None else None,
        is_not_started=is_not_started,
    )
