"""Per-prediction lookup tables shared by the bracket searches.

Colour preferences and compatibility depend only on the round histories, which
do not change while one round is being paired. A :class:`PairingContext`
computes them once per player and per pair, and carries the configuration and
the wall-clock deadline through the searches.
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
from typing import Dict, FrozenSet, Optional, Tuple

from swissforecast.config import PairingConfig
from swissforecast.exceptions import PairingTimeoutException
from swissforecast.player import Player
from swissforecast.type_hints import Colour

# (preference, weight of its strength)
ColourProfile = Tuple[Optional[Colour], int]
BracketKey = Tuple[Tuple[int, ...], Tuple[int, ...]]

# search steps between two looks at the clock
_CLOCK_INTERVAL = 256


def can_play(p1: Player, p2: Player) -> bool:
    """Check if two players can be paired.

    Both histories are consulted, so a game recorded on one side only still
    counts as played.
    """
    if p1.start_no == p2.start_no:
        return False
    return not p1.has_played(p2.start_no) and not p2.has_played(p1.start_no)


class PairingContext:
    """Configuration, deadline and memoised player facts of one prediction.

    A context must not outlive the round it was created for: once histories
    change, its tables are stale.

    Attributes:
        config: Search limits and weights
        deadline: ``time.monotonic()`` value after which the search gives up,
            None for no limit
        penalties: Bracket penalties already computed, keyed by the start
            numbers of S1 and S2
    """

    def __init__(
        self, config: Optional[PairingConfig] = None, deadline: Optional[float] = None
    ) -> None:
        self.config = config or PairingConfig()
        self.deadline = deadline
        self.penalties: Dict[BracketKey, int] = {}
        self._profiles: Dict[int, ColourProfile] = {}
        self._compatible: Dict[FrozenSet[int], bool] = {}
        self._steps = 0

    def colour_profile(self, player: Player) -> ColourProfile:
        """Colour preference of ``player`` and the weight of its strength."""
        profile = self._profiles.get(player.start_no)
        if profile is None:
            profile = (
                player.colour_preference(),
                self.config.preference_weight(player.preference_strength()),
            )
            self._profiles[player.start_no] = profile
        return profile

    def can_play(self, p1: Player, p2: Player) -> bool:
        """Memoised :func:`can_play`."""
        key = frozenset((p1.start_no, p2.start_no))
        compatible = self._compatible.get(key)
        if compatible is None:
            compatible = can_play(p1, p2)
            self._compatible[key] = compatible
        return compatible

    def colour_cost(self, p1: Player, p2: Player) -> int:
        """Weighted colour conflict cost, the weaker preference gives way."""
        pref1, weight1 = self.colour_profile(p1)
        pref2, weight2 = self.colour_profile(p2)
        if pref1 is None or pref1 != pref2:
            return 0
        return min(weight1, weight2)

    def pair_cost(self, p1: Player, p2: Player) -> int:
        """Penalty contribution of pairing ``p1`` with ``p2``."""
        if not self.can_play(p1, p2):
            return self.config.repeat_pairing_penalty
        return self.colour_cost(p1, p2)

    def check_deadline(self) -> None:
        """Raise once the time budget is spent."""
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise PairingTimeoutException(
                f"Pairing exceeded its budget of {self.config.time_budget}s"
            )

    def step(self) -> None:
        """Count one search step, looking at the clock now and then."""
        self._steps += 1
        if self._steps % _CLOCK_INTERVAL == 0:
            self.check_deadline()
