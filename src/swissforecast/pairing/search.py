"""S1/S2 bracket pairing search.

The search pairs the top half of a bracket against its bottom half while
never repeating an earlier game and keeping the weighted colour cost low.
Small halves are searched exhaustively; larger halves use a bounded local
search of pairwise swaps, which is a heuristic and not a global optimum.
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

from dataclasses import dataclass, field
from itertools import combinations, islice
from typing import Dict, List, Optional, Sequence

from swissforecast.pairing.context import PairingContext, can_play
from swissforecast.player import Player
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)

__all__ = [
    "BracketResult",
    "HeterogeneousResult",
    "PairingCandidate",
    "bracket_penalty",
    "can_play",
    "complete_pairing",
    "pair_heterogeneous_bracket",
    "pair_score_group",
    "try_pairing",
]


@dataclass
class PairingCandidate:
    """A provisional pairing produced by the search.

    ``player1`` comes from the S1 side. Board and colours are filled in once
    the whole round has been paired.
    """

    player1: Player
    player2: Player
    board: int = 0
    white: Optional[Player] = None
    black: Optional[Player] = None

    @property
    def start_numbers(self) -> frozenset:
        return frozenset((self.player1.start_no, self.player2.start_no))


@dataclass
class BracketResult:
    """Outcome of pairing one S1/S2 assignment.

    Attributes:
        pairings: Legal pairings in S1 order
        unpaired: Players left without a legal partner
        conflicts: Positions where the assignment would repeat a game
        colour_cost: Summed colour conflict cost of the legal pairings
        penalty: conflicts * repeat penalty + colour_cost
    """

    pairings: List[PairingCandidate] = field(default_factory=list)
    unpaired: List[Player] = field(default_factory=list)
    conflicts: int = 0
    colour_cost: int = 0
    penalty: int = 0


@dataclass
class HeterogeneousResult:
    """Outcome of pairing downfloaters against a bracket's natives."""

    pairings: List[PairingCandidate] = field(default_factory=list)
    remaining_natives: List[Player] = field(default_factory=list)
    unpaired: List[Player] = field(default_factory=list)


def try_pairing(
    s1: Sequence[Player],
    s2: Sequence[Player],
    context: Optional[PairingContext] = None,
) -> BracketResult:
    """Pair ``s1[i]`` with ``s2[i]`` and score the assignment.

    Positions that would repeat a game leave both players unpaired, as do
    the surplus members of the longer half.
    """
    context = context or PairingContext()
    result = BracketResult()
    count = min(len(s1), len(s2))

    for p1, p2 in zip(s1, s2):
        if context.can_play(p1, p2):
            result.pairings.append(PairingCandidate(p1, p2))
            result.colour_cost += context.colour_cost(p1, p2)
        else:
            result.conflicts += 1
            result.unpaired.extend([p1, p2])

    result.unpaired.extend(s1[count:])
    result.unpaired.extend(s2[count:])
    result.penalty = (
        result.conflicts * context.config.repeat_pairing_penalty + result.colour_cost
    )
    return result


def pair_score_group(
    s1: Sequence[Player],
    s2: Sequence[Player],
    context: Optional[PairingContext] = None,
) -> BracketResult:
    """Find the lowest-penalty assignment of S1 against S2.

    The identity assignment is accepted straight away when it costs nothing.
    Otherwise halves up to ``exhaustive_search_limit`` are searched
    exhaustively (visiting at most ``max_permutations`` partial assignments)
    and larger halves run the local swap search.

    Args:
        s1: Top half, in pairing-number order
        s2: Bottom half, in pairing-number order
        context: Configuration and lookup tables of the current prediction

    Returns:
        The best assignment found
    """
    context = context or PairingContext()
    count = min(len(s1), len(s2))
    if count == 0:
        return BracketResult(unpaired=list(s1) + list(s2))

    direct = try_pairing(s1, s2, context)
    if direct.penalty == 0:
        return direct

    if count <= context.config.exhaustive_search_limit:
        return _exhaustive_search(s1, s2, direct, context)
    return _local_search(s1, s2, direct, context)


def bracket_penalty(
    s1: Sequence[Player], s2: Sequence[Player], context: PairingContext
) -> int:
    """Penalty of :func:`pair_score_group`, remembered for the whole prediction."""
    key = (tuple(p.start_no for p in s1), tuple(p.start_no for p in s2))
    penalty = context.penalties.get(key)
    if penalty is None:
        penalty = pair_score_group(s1, s2, context).penalty
        context.penalties[key] = penalty
    return penalty


def _exhaustive_search(
    s1: Sequence[Player],
    s2: Sequence[Player],
    best: BracketResult,
    context: PairingContext,
) -> BracketResult:
    """Depth-first search over S2 orderings in permutation order.

    A partial assignment is abandoned as soon as even the cheapest completion
    of the remaining rows cannot strictly beat the best one found so far, so
    the result is the first minimum-penalty ordering, as a plain enumeration
    of permutations would return it.
    """
    count = min(len(s1), len(s2))
    costs = [[context.pair_cost(p1, p2) for p2 in s2] for p1 in s1[:count]]
    # cheapest possible cost of the rows from i on
    floor = [0] * (count + 1)
    for i in range(count - 1, -1, -1):
        floor[i] = floor[i + 1] + min(costs[i])
    used = [False] * len(s2)
    chosen: List[int] = []
    best_penalty = best.penalty
    choice: Optional[List[int]] = None
    visited = 0

    def descend(i: int, partial: int) -> None:
        nonlocal best_penalty, choice, visited
        if i == count:
            best_penalty = partial
            choice = list(chosen)
            return
        for j in range(len(s2)):
            if used[j]:
                continue
            total = partial + costs[i][j]
            if total + floor[i + 1] >= best_penalty:
                continue
            if visited >= context.config.max_permutations:
                return
            visited += 1
            context.step()
            used[j] = True
            chosen.append(j)
            descend(i + 1, total)
            chosen.pop()
            used[j] = False
            if best_penalty == 0:
                return

    descend(0, 0)
    if choice is None:
        return best

    ordering = [s2[j] for j in choice]
    ordering.extend(p for j, p in enumerate(s2) if j not in choice)
    return try_pairing(s1, ordering, context)


def _local_search(
    s1: Sequence[Player],
    s2: Sequence[Player],
    best: BracketResult,
    context: PairingContext,
) -> BracketResult:
    count = min(len(s1), len(s2))
    order = list(s2)

    for _ in range(count * context.config.local_search_pass_factor):
        improved = False
        for i in range(count):
            if context.can_play(s1[i], order[i]) and not context.colour_cost(
                s1[i], order[i]
            ):
                continue

            # forward positions first, then backward
            search_order = list(range(i + 1, len(order))) + list(range(i - 1, -1, -1))
            for j in search_order:
                if not context.can_play(s1[i], order[j]):
                    continue
                if (
                    j < count
                    and context.can_play(s1[j], order[j])
                    and not context.can_play(s1[j], order[i])
                ):
                    continue

                context.step()
                swapped = list(order)
                swapped[i], swapped[j] = swapped[j], swapped[i]
                result = try_pairing(s1, swapped, context)
                if result.penalty < best.penalty:
                    best = result
                    order = swapped
                    improved = True
                    break
        if not improved or best.penalty == 0:
            break

    logger.debug(
        "Local search on %d boards finished with penalty %d", count, best.penalty
    )
    return best


def pair_heterogeneous_bracket(
    downfloaters: Sequence[Player],
    natives: Sequence[Player],
    context: Optional[PairingContext] = None,
) -> HeterogeneousResult:
    """Pair players moved down from higher brackets against this bracket.

    Downfloaters act as S1. With few downfloaters and a small native window
    every combination of natives is tried; otherwise they are paired against
    the first natives by start number.

    Args:
        downfloaters: Players carried down, in the order they floated
        natives: Players whose score is this bracket's score
        context: Configuration and lookup tables of the current prediction

    Returns:
        The pairings, the natives left for the bracket's own pairing, and
        the downfloaters that still have no partner
    """
    context = context or PairingContext()
    config = context.config
    natives = sorted(natives, key=lambda p: p.start_no)
    m = len(downfloaters)
    window = min(len(natives), m + config.heterogeneous_native_window)
    candidates = natives[:window]

    if (
        m <= config.heterogeneous_max_downfloaters
        and window <= config.heterogeneous_max_natives
    ):
        best: Optional[BracketResult] = None
        size = min(m, len(candidates))
        for combo in islice(combinations(candidates, size), config.max_combinations):
            result = pair_score_group(downfloaters, list(combo), context)
            if best is None or result.penalty < best.penalty:
                best = result
                if best.penalty == 0:
                    break
    else:
        best = pair_score_group(downfloaters, natives[:m], context)

    used = set()
    for pairing in best.pairings:
        used.update(pairing.start_numbers)
    remaining = [p for p in natives if p.start_no not in used]
    unpaired = [p for p in downfloaters if p.start_no not in used]
    logger.debug(
        "Heterogeneous bracket: %d of %d downfloaters paired",
        m - len(unpaired),
        m,
    )
    return HeterogeneousResult(
        pairings=best.pairings, remaining_natives=remaining, unpaired=unpaired
    )


def complete_pairing(
    players: Sequence[Player], context: Optional[PairingContext] = None
) -> Optional[List[PairingCandidate]]:
    """Pair every player without a repeat game, if that is possible at all.

    Backtracking always extends the player with the fewest legal partners
    left. Partners are tried by score difference, then colour cost, then
    start number, so the first complete pairing found stays close to the
    score brackets.

    Returns:
        The pairings, or None when no complete pairing exists or the search
        ran past ``repair_node_limit`` steps
    """
    context = context or PairingContext()
    if len(players) % 2 == 1:
        return None

    ordered = sorted(players, key=lambda p: p.start_no)
    partners: Dict[int, List[Player]] = {
        p.start_no: sorted(
            (q for q in ordered if context.can_play(p, q)),
            key=lambda q, p=p: (
                abs(p.score - q.score),
                context.colour_cost(p, q),
                q.start_no,
            ),
        )
        for p in ordered
    }
    remaining = {p.start_no: p for p in ordered}
    pairings: List[PairingCandidate] = []
    limit = context.config.repair_node_limit
    steps = 0

    def extend() -> bool:
        nonlocal steps
        if not remaining:
            return True
        steps += 1
        if steps > limit:
            return False
        context.step()

        chosen: Optional[Player] = None
        options: List[Player] = []
        for start_no in sorted(remaining):
            legal = [q for q in partners[start_no] if q.start_no in remaining]
            if not legal:
                return False
            if chosen is None or len(legal) < len(options):
                chosen, options = remaining[start_no], legal

        del remaining[chosen.start_no]
        for partner in options:
            del remaining[partner.start_no]
            pairings.append(PairingCandidate(chosen, partner))
            if extend():
                return True
            pairings.pop()
            remaining[partner.start_no] = partner
        remaining[chosen.start_no] = chosen
        return False

    if extend():
        return pairings
    if steps > limit:
        logger.warning(
            "Gave up pairing %d players without repeats after %d steps",
            len(ordered),
            limit,
        )
    return None
