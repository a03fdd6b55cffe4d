"""Colour allocation for finished pairings."""

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

from typing import Tuple

from swissforecast.player import Player
from swissforecast.type_hints import WHITE, Colour


def colour_tiebreak(p1: Player, p2: Player, colour: Colour) -> Player:
    """Decide who gets ``colour`` when both players want it.

    Priority: wider colour imbalance, then the player who had that colour
    longer ago, then ``p1`` (the S1 side of the pairing).
    """
    imbalance1 = p1.colour_imbalance()
    imbalance2 = p2.colour_imbalance()
    if imbalance1 != imbalance2:
        return p1 if imbalance1 > imbalance2 else p2

    last1 = p1.last_round_with_colour(colour)
    last2 = p2.last_round_with_colour(colour)
    if last1 != last2:
        return p1 if last1 < last2 else p2

    return p1


def assign_colours(p1: Player, p2: Player, board: int) -> Tuple[Player, Player]:
    """
    Allocate colours for a pairing already placed on ``board``.
    Returns (white_player, black_player)

    1. Only one player has a preference: grant it
    2. Preferences differ: grant both
    3. Same preference: the tiebreak winner gets it
    4. No preferences: the lower start number gets white on odd boards
    """
    pref1 = p1.colour_preference()
    pref2 = p2.colour_preference()

    if pref1 is None and pref2 is None:
        higher, lower = (p1, p2) if p1.start_no < p2.start_no else (p2, p1)
        return (higher, lower) if board % 2 == 1 else (lower, higher)

    if pref1 is None:
        return (p2, p1) if pref2 == WHITE else (p1, p2)

    if pref2 is None or pref1 != pref2:
        return (p1, p2) if pref1 == WHITE else (p2, p1)

    winner = colour_tiebreak(p1, p2, pref1)
    loser = p2 if winner is p1 else p1
    return (winner, loser) if pref1 == WHITE else (loser, winner)
