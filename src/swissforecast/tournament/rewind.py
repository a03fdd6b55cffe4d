"""Rebuild a tournament state as it was before a given round."""

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

import copy
from typing import Optional, Set

from swissforecast.exceptions import InvalidRoundException
from swissforecast.tournament.models import TournamentInfo, TournamentState
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


def rewind_to_round(state: TournamentState, target_round: int) -> TournamentState:
    """Derive the state the arbiter saw when pairing ``target_round``.

    Every player keeps only rounds 1..target_round-1 of history, scores are
    summed from the retained results and bye flags are recomputed from the
    retained bye rounds. The original state is never modified.

    Args:
        state: Full tournament state
        target_round: Round about to be paired (0 and 1 both mean "no history")

    Returns:
        A new, independent tournament state

    Raises:
        InvalidRoundException: If target_round is negative
    """
    if not isinstance(target_round, int) or target_round < 0:
        raise InvalidRoundException(f"Cannot rewind to round {target_round!r}")

    cutoff = max(target_round - 1, 0)
    completed = cutoff
    if state.info.total_rounds > 0:
        completed = min(cutoff, state.info.total_rounds)

    info = TournamentInfo(
        name=state.info.name,
        tournament_id=state.info.tournament_id,
        completed_rounds=completed,
        total_rounds=state.info.total_rounds,
    )
    players = {no: p.rewound(cutoff) for no, p in state.players.items()}
    rounds = {
        no: copy.deepcopy(rnd) for no, rnd in state.rounds.items() if no <= cutoff
    }
    logger.debug(
        "Rewound %s to round %d: %d rounds kept", info.name, target_round, len(rounds)
    )
    return TournamentState(info=info, players=players, rounds=rounds)


def actual_pool_for_round(
    state: TournamentState, round_number: int
) -> Optional[Set[int]]:
    """Start numbers that played a real game in a recorded round.

    Byes are excluded, so the pool of an odd round is even and players who
    withdrew before the round are not paired in a retrospective prediction.

    Returns:
        The set of start numbers, or None if the round is not recorded
    """
    rnd = state.rounds.get(round_number)
    if rnd is None:
        return None
    return {no for no in rnd.participants() if no in state.players}


def check_target_round(state: TournamentState, target_round: int) -> None:
    """Make sure an engine can be asked to pair ``target_round``.

    Any round from 1 up to the one after the last scheduled round is
    accepted; without a known number of rounds there is no upper bound.

    Raises:
        InvalidRoundException: If the round lies outside the tournament
    """
    last = state.info.total_rounds + 1 if state.info.total_rounds > 0 else None
    if (
        not isinstance(target_round, int)
        or target_round < 1
        or (last is not None and target_round > last)
    ):
        raise InvalidRoundException(
            f"Cannot pair round {target_round!r} of {state.info.name}"
        )
