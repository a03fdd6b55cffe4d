"""Dutch Swiss Pairing System Implementation.

Predicts the next round of a Swiss tournament the way a FIDE Dutch system
arbiter would pair it: bye first, then score brackets from the top with
downfloaters carried into the next bracket, then boards and colours.
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

import time
from typing import List, Optional, Sequence, Tuple

from swissforecast.config import PairingConfig
from swissforecast.exceptions import EmptyPoolException
from swissforecast.pairing.brackets import (
    build_score_groups,
    select_downfloater,
    split_bracket,
)
from swissforecast.pairing.colours import assign_colours
from swissforecast.pairing.context import PairingContext
from swissforecast.pairing.search import (
    PairingCandidate,
    complete_pairing,
    pair_heterogeneous_bracket,
    pair_score_group,
)
from swissforecast.player import Player
from swissforecast.tournament.models import (
    ByeRecord,
    PredictedPairing,
    PredictionResult,
    TournamentState,
)
from swissforecast.tournament.rewind import check_target_round, rewind_to_round
from swissforecast.type_hints import Pool
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


def select_bye(pool: Sequence[Player]) -> Optional[Player]:
    """Pick the bye for an odd pool.

    Players are ordered by ascending score, then descending start number; the
    first one who never had a bye gets it. If everyone already had one, the
    first in that order gets it anyway.

    Returns:
        The bye player, or None when the pool is even
    """
    if len(pool) % 2 == 0:
        return None
    ordered = sorted(pool, key=lambda p: (p.score, -p.start_no))
    for player in ordered:
        if not player.has_received_bye:
            return player
    return ordered[0]


def _board_key(candidate: PairingCandidate) -> Tuple[float, float, int]:
    p1, p2 = candidate.player1, candidate.player2
    higher = p1 if p1.start_no < p2.start_no else p2
    return (-higher.score, -(p1.score + p2.score), higher.start_no)


def assign_board_numbers(
    candidates: Sequence[PairingCandidate],
) -> List[PairingCandidate]:
    """Order pairings into boards.

    1. Highest score of the higher-ranked (lower start number) player
    2. Highest sum of both scores
    3. Smallest start number of the higher-ranked player
    """
    ordered = sorted(candidates, key=_board_key)
    for board, candidate in enumerate(ordered, 1):
        candidate.board = board
    return ordered


def _first_fit(
    players: Sequence[Player], context: PairingContext
) -> Tuple[List[PairingCandidate], List[Player]]:
    """Greedy pass that still refuses repeat games."""
    pairings = []
    remaining = sorted(players, key=lambda p: p.start_no)
    unpaired = []

    while len(remaining) >= 2:
        player1 = remaining.pop(0)
        for i, player2 in enumerate(remaining):
            if context.can_play(player1, player2):
                pairings.append(PairingCandidate(player1, player2))
                remaining.pop(i)
                break
        else:
            unpaired.append(player1)

    return pairings, unpaired + remaining


class DutchSwissEngine:
    """Built-in pairing engine.

    The engine keeps no state between calls; one instance may serve any
    number of predictions.
    """

    name = "dutch"

    def __init__(self, config: Optional[PairingConfig] = None) -> None:
        self.config = config or PairingConfig()

    def predict(
        self,
        state: TournamentState,
        pool: Pool = None,
        target_round: Optional[int] = None,
    ) -> PredictionResult:
        """Predict the pairings of the next round.

        Args:
            state: Tournament state
            pool: Start numbers allowed to play, None for every player
            target_round: Historical round to predict; the state is rewound
                to it first. None predicts ``state.next_round``

        Returns:
            The predicted round

        Raises:
            EmptyPoolException: If no player is eligible
            InvalidRoundException: If target_round lies outside the tournament
            PairingTimeoutException: If the configured time budget runs out
        """
        if target_round is not None and target_round != state.next_round:
            check_target_round(state, target_round)
            state = rewind_to_round(state, target_round)

        deadline = None
        if self.config.time_budget is not None:
            deadline = time.monotonic() + self.config.time_budget
        context = PairingContext(self.config, deadline)

        players = state.eligible_players(pool)
        if not players:
            raise EmptyPoolException(
                f"No eligible players for round {state.next_round}"
            )

        bye_player = select_bye(players)
        if bye_player is not None:
            players = [p for p in players if p is not bye_player]
            logger.debug("Bye goes to %d", bye_player.start_no)

        layers, leftovers = self._pair_brackets(players, context)
        pairings, unpaired = self._pair_leftovers(leftovers, context)
        if unpaired:
            layers, pairings, unpaired = self._dissolve_lowest_brackets(
                layers, pairings, unpaired, context
            )
        candidates = [c for layer in layers for c in layer] + pairings

        if unpaired:
            logger.warning(
                "Round %d: no legal pairing found for %s",
                state.next_round,
                ", ".join(str(p.start_no) for p in unpaired),
            )

        result = PredictionResult(
            round_number=state.next_round,
            bye=ByeRecord.for_player(bye_player) if bye_player else None,
            unpaired=unpaired,
        )
        for candidate in assign_board_numbers(candidates):
            candidate.white, candidate.black = assign_colours(
                candidate.player1, candidate.player2, candidate.board
            )
            result.pairings.append(
                PredictedPairing(
                    board=candidate.board, white=candidate.white, black=candidate.black
                )
            )
        logger.info(
            "Predicted round %d: %d boards, bye %s",
            result.round_number,
            len(result.pairings),
            bye_player.start_no if bye_player else "none",
        )
        return result

    def _pair_brackets(
        self, players: List[Player], context: PairingContext
    ) -> Tuple[List[List[PairingCandidate]], List[Player]]:
        """Pair every score bracket from the top, carrying downfloaters down.

        Returns:
            The pairings made in each bracket, top bracket first, and the
            players still unpaired below the lowest bracket
        """
        groups = build_score_groups(players)
        layers: List[List[PairingCandidate]] = []
        downfloaters: List[Player] = []

        for index, group in enumerate(groups):
            context.check_deadline()
            layer: List[PairingCandidate] = []
            natives = list(group.players)
            next_natives = groups[index + 1].players if index + 1 < len(groups) else []

            if downfloaters:
                mixed = pair_heterogeneous_bracket(downfloaters, natives, context)
                layer.extend(mixed.pairings)
                natives = mixed.remaining_natives
                downfloaters = mixed.unpaired

            if len(natives) % 2 == 1:
                floater = natives.pop(
                    select_downfloater(natives, next_natives, context)
                )
                logger.debug(
                    "Bracket %.1f: %d floats down", group.score, floater.start_no
                )
                downfloaters.append(floater)

            if natives:
                s1, s2 = split_bracket(natives)
                result = pair_score_group(s1, s2, context)
                layer.extend(result.pairings)
                downfloaters.extend(result.unpaired)

            if layer:
                layers.append(layer)

        return layers, downfloaters

    def _pair_leftovers(
        self, leftovers: List[Player], context: PairingContext
    ) -> Tuple[List[PairingCandidate], List[Player]]:
        """Pair downfloaters left after the lowest bracket among themselves."""
        if len(leftovers) < 2:
            return [], list(leftovers)

        s1, s2 = split_bracket(sorted(leftovers, key=lambda p: p.start_no))
        result = pair_score_group(s1, s2, context)
        extra, unpaired = _first_fit(result.unpaired, context)
        return result.pairings + extra, unpaired

    def _dissolve_lowest_brackets(
        self,
        layers: List[List[PairingCandidate]],
        pairings: List[PairingCandidate],
        unpaired: List[Player],
        context: PairingContext,
    ) -> Tuple[List[List[PairingCandidate]], List[PairingCandidate], List[Player]]:
        """Undo the lowest brackets until everyone can be paired.

        The players of the leftover pairings and of the dissolved brackets are
        re-paired together without repeats. Brackets are dissolved from the
        bottom one at a time, so the higher brackets keep their pairings
        whenever possible.

        Returns:
            The kept brackets, the pairings of the merged pool and whoever is
            still unpaired; the input unchanged when no repair exists
        """
        merged = list(unpaired)
        for pairing in pairings:
            merged.extend([pairing.player1, pairing.player2])

        kept = list(layers)
        while True:
            repaired = complete_pairing(merged, context)
            if repaired is not None:
                logger.info(
                    "Re-paired %d players after dissolving %d bracket(s)",
                    len(merged),
                    len(layers) - len(kept),
                )
                return kept, repaired, []
            if not kept:
                return layers, pairings, unpaired
            for pairing in kept.pop():
                merged.extend([pairing.player1, pairing.player2])


def predict_pairings(
    state: TournamentState,
    pool: Pool = None,
    config: Optional[PairingConfig] = None,
) -> PredictionResult:
    """Predict the next round of ``state`` with the built-in engine."""
    return DutchSwissEngine(config).predict(state, pool)
