"""Score-group formation and downfloater selection with one-bracket lookahead."""

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
from typing import Dict, List, Optional, Sequence, Tuple

from swissforecast.pairing.context import PairingContext
from swissforecast.pairing.search import bracket_penalty
from swissforecast.player import Player
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class ScoreGroup:
    """All eligible players on one score, in pairing-number order."""

    score: float
    players: List[Player] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.players)


def build_score_groups(players: Sequence[Player]) -> List[ScoreGroup]:
    """Partition players into brackets of strictly descending score.

    Players inside a bracket are ordered by ascending start number.
    """
    by_score: Dict[float, List[Player]] = {}
    for player in players:
        by_score.setdefault(player.score, []).append(player)
    return [
        ScoreGroup(score, sorted(group, key=lambda p: p.start_no))
        for score, group in sorted(by_score.items(), key=lambda item: -item[0])
    ]


def split_bracket(players: Sequence[Player]) -> Tuple[List[Player], List[Player]]:
    """Split a bracket into S1 (top half) and S2 (the rest)."""
    half = len(players) // 2
    return list(players[:half]), list(players[half:])


def evaluate_next_bracket_fit(
    candidate: Player,
    next_group: Sequence[Player],
    context: Optional[PairingContext] = None,
) -> int:
    """Estimate how well a downfloater would fit into the next bracket.

    Each native the candidate may play is tried as its partner; the score of
    that choice is the partner colour cost times ``next_bracket_colour_weight``
    plus the penalty of pairing the natives that would be left.

    Returns:
        The best score over all partners, 0 for an empty next bracket, and
        ``no_fit_penalty`` when the candidate cannot play anyone in it
    """
    context = context or PairingContext()
    config = context.config
    if not next_group:
        return 0
    natives = sorted(next_group, key=lambda p: p.start_no)

    best: Optional[int] = None
    for i, native in enumerate(natives):
        if not context.can_play(candidate, native):
            continue
        pair_cost = context.colour_cost(candidate, native)

        remaining = natives[:i] + natives[i + 1 :]
        remain_penalty = 0
        half = len(remaining) // 2
        if half > 0:
            # an odd remainder leaves its last member out of the estimate
            remain_penalty = bracket_penalty(
                remaining[:half], remaining[half : 2 * half], context
            )

        total = pair_cost * config.next_bracket_colour_weight + remain_penalty
        if best is None or total < best:
            best = total
            if best == 0:
                break

    return best if best is not None else config.no_fit_penalty


def select_downfloater(
    group: Sequence[Player],
    next_group: Sequence[Player] = (),
    context: Optional[PairingContext] = None,
) -> int:
    """Choose who leaves an odd bracket.

    Candidates are the lower half of the bracket, at most the last
    ``downfloater_window`` players, scanned from the bottom up. A candidate
    scores ``current_bracket_weight`` times the penalty of pairing the bracket
    without it, plus its fit into the next bracket. Only a strictly better
    score replaces the current choice, so ties keep the lowest-placed player.

    Args:
        group: Odd bracket in pairing-number order
        next_group: Natives of the next lower bracket
        context: Configuration and lookup tables of the current prediction

    Returns:
        Index in ``group`` of the player to float down
    """
    context = context or PairingContext()
    config = context.config
    count = len(group)
    first_candidate = max(count // 2, count - config.downfloater_window)
    best_idx = count - 1
    best_score: Optional[int] = None

    for idx in range(count - 1, first_candidate - 1, -1):
        remaining = list(group[:idx]) + list(group[idx + 1 :])
        s1, s2 = split_bracket(remaining)
        current = bracket_penalty(s1, s2, context)
        lookahead = evaluate_next_bracket_fit(group[idx], next_group, context)
        score = current * config.current_bracket_weight + lookahead
        logger.debug(
            "Downfloat candidate %d: bracket penalty %d, lookahead %d",
            group[idx].start_no,
            current,
            lookahead,
        )
        if best_score is None or score < best_score:
            best_score = score
            best_idx = idx
            if score == 0:
                break

    return best_idx
