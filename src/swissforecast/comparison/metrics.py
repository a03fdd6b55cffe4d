"""Metrics comparing predicted pairings with the pairings actually published.

Back-testing replays every recorded round: the state is rewound to just
before it, the round is predicted over the players who actually played it,
and the prediction is scored against the real boards.
"""

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

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from swissforecast.exceptions import PairingException
from swissforecast.forecast import PairingEngine
from swissforecast.pairing import DutchSwissEngine
from swissforecast.tournament.models import PredictionResult, RoundData, TournamentState
from swissforecast.tournament.rewind import actual_pool_for_round
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class RoundComparison:
    """How well one predicted round matches the published one.

    Attributes:
        round_number: The compared round
        total_boards: Published boards with a real game
        pairing_matches: Boards whose two players were predicted together
        board_matches: ...and on the same board
        exact_matches: ...and with the same colours
    """

    round_number: int
    total_boards: int = 0
    pairing_matches: int = 0
    board_matches: int = 0
    exact_matches: int = 0

    @staticmethod
    def _percent(part: int, whole: int) -> int:
        return round(100 * part / whole) if whole else 0

    @property
    def pairing_rate(self) -> int:
        return self._percent(self.pairing_matches, self.total_boards)

    @property
    def board_rate(self) -> int:
        return self._percent(self.board_matches, self.total_boards)

    @property
    def exact_rate(self) -> int:
        return self._percent(self.exact_matches, self.total_boards)

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for serialization."""
        return {
            "round_number": self.round_number,
            "total_boards": self.total_boards,
            "pairing_matches": self.pairing_matches,
            "board_matches": self.board_matches,
            "exact_matches": self.exact_matches,
        }

    def __str__(self) -> str:
        n = self.total_boards
        return (
            f"Round {self.round_number}: "
            f"{self.pairing_matches}/{n} pairings ({self.pairing_rate}%)  "
            f"{self.board_matches}/{n} correct board ({self.board_rate}%)  "
            f"{self.exact_matches}/{n} exact match ({self.exact_rate}%)"
        )


def compare_round(
    prediction: PredictionResult, actual_round: RoundData
) -> RoundComparison:
    """Score a predicted round against the published round."""
    predicted: Dict[FrozenSet[int], Tuple[int, int, int]] = {
        frozenset((p.white.start_no, p.black.start_no)): (
            p.board,
            p.white.start_no,
            p.black.start_no,
        )
        for p in prediction.pairings
    }

    comparison = RoundComparison(round_number=actual_round.round_number)
    for pairing in actual_round.pairings:
        if pairing.is_bye:
            continue
        comparison.total_boards += 1
        match = predicted.get(frozenset((pairing.white_no, pairing.black_no)))
        if match is None:
            continue
        comparison.pairing_matches += 1
        board, white_no, black_no = match
        if board != pairing.board:
            continue
        comparison.board_matches += 1
        if (white_no, black_no) == (pairing.white_no, pairing.black_no):
            comparison.exact_matches += 1
    return comparison


def backtest(
    state: TournamentState, engine: Optional[PairingEngine] = None
) -> List[RoundComparison]:
    """Predict every recorded round of ``state`` and compare with reality.

    A round the engine cannot pair within its budget is logged and skipped.

    Args:
        state: Full tournament state
        engine: Pairing engine, defaults to the built-in Dutch engine

    Returns:
        One comparison per recorded round, in round order
    """
    engine = engine or DutchSwissEngine()
    comparisons = []
    for round_number, actual_round in sorted(state.rounds.items()):
        pool = actual_pool_for_round(state, round_number)
        try:
            prediction = engine.predict(state, pool, target_round=round_number)
        except PairingException as e:
            logger.warning("Skipping round %d: %s", round_number, e)
            continue
        comparison = compare_round(prediction, actual_round)
        logger.info("%s", comparison)
        comparisons.append(comparison)
    return comparisons
