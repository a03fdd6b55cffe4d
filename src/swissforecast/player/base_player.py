"""A chess player in a Swiss tournament, as seen by the pairing engine."""

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

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from swissforecast.constants import (
    BYE_OPPONENT,
    COLOUR_TOKENS,
    PREFERENCE_ABSOLUTE,
    PREFERENCE_MILD,
    PREFERENCE_STRONG,
    RESULT_TOKENS,
)
from swissforecast.exceptions import InvalidTournamentDataException
from swissforecast.type_hints import BLACK, WHITE, Colour
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in ``data``."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_colour(value: Any) -> Optional[Colour]:
    """Normalise a colour token; anything else (forfeit, blank) is None."""
    if value is None:
        return None
    return COLOUR_TOKENS.get(str(value).strip())  # type: ignore


def parse_result(value: Any) -> Optional[float]:
    """Normalise a per-player result token to 1.0 / 0.5 / 0.0 or None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    token = str(value).strip()
    if not token or token == "-":
        return None
    if token in RESULT_TOKENS:
        return RESULT_TOKENS[token]
    logger.warning("Unknown result token %r treated as no result", value)
    return None


def _round_keyed(mapping: Optional[Dict[Any, Any]]) -> Dict[int, Any]:
    """Convert a JSON mapping with string round keys into an int-keyed dict."""
    if not mapping:
        return {}
    if isinstance(mapping, list):
        # dense list, round 1 first
        return {idx: value for idx, value in enumerate(mapping, 1)}
    return {int(round_no): value for round_no, value in mapping.items()}


class Player:
    """Represents a player in the tournament.

    A player is a per-request value: the pairing engine only reads it, and
    state reconstruction builds new instances with :meth:`rewound`.

    Attributes:
        start_no: Unique positive start number (the FIDE pairing number)
        name: Player's display name
        rating: Player's rating
        federation: Federation code
        score: Current cumulative score
        rank: Rank in the published standings, if known
        opponents: Round number -> opponent start number (0 for a bye)
        colours: Round number -> colour played (None for forfeits and byes)
        results: Round number -> points scored (None if recorded without result)
        has_received_bye: Whether player has received a bye
        bye_rounds: Rounds in which the player had a bye
    """

    def __init__(
        self,
        start_no: int,
        name: str = "",
        rating: Optional[int] = None,
        federation: Optional[str] = None,
        score: float = 0.0,
        rank: Optional[int] = None,
        opponents: Optional[Dict[int, int]] = None,
        colours: Optional[Dict[int, Optional[Colour]]] = None,
        results: Optional[Dict[int, Optional[float]]] = None,
        has_received_bye: bool = False,
        bye_rounds: Optional[Iterable[int]] = None,
    ) -> None:
        if not isinstance(start_no, int) or start_no <= 0:
            raise InvalidTournamentDataException(
                f"Start number must be a positive integer, got {start_no!r}"
            )
        self.start_no: int = start_no
        self.name: str = name
        self.rating: int = rating if rating is not None else 0
        self.federation: Optional[str] = federation
        self.score: float = float(score)
        self.rank: Optional[int] = rank

        # Sparse round-indexed histories; a missing key means "not recorded"
        self.opponents: Dict[int, int] = dict(opponents or {})
        self.colours: Dict[int, Optional[Colour]] = dict(colours or {})
        self.results: Dict[int, Optional[float]] = dict(results or {})
        self.has_received_bye: bool = has_received_bye
        self.bye_rounds: List[int] = sorted(bye_rounds or [])

    def played_colours(self) -> List[Colour]:
        """Colours of the games actually played, oldest first."""
        return [
            self.colours[round_no]  # type: ignore
            for round_no in sorted(self.colours)
            if self.colours[round_no] in (WHITE, BLACK)
        ]

    def colour_preference(self) -> Optional[Colour]:
        """Determine the colour this player is due.

        Rules:
        1. No games played: no preference
        2. Absolute: last two games had the same colour, MUST get the opposite
        3. Colours unbalanced: prefer the colour that rebalances them
        4. Balanced: alternate from the last colour played

        Returns:
            "White", "Black", or None if no preference
        """
        played = self.played_colours()
        if not played:
            return None

        if len(played) >= 2 and played[-1] == played[-2]:
            return BLACK if played[-1] == WHITE else WHITE

        whites = played.count(WHITE)
        blacks = played.count(BLACK)
        if whites > blacks:
            return BLACK
        if blacks > whites:
            return WHITE

        return BLACK if played[-1] == WHITE else WHITE

    def preference_strength(self) -> Optional[str]:
        """Strength of the colour preference: absolute, strong or mild."""
        played = self.played_colours()
        if not played:
            return None
        if len(played) >= 2 and played[-1] == played[-2]:
            return PREFERENCE_ABSOLUTE
        if played.count(WHITE) != played.count(BLACK):
            return PREFERENCE_STRONG
        return PREFERENCE_MILD

    def colour_imbalance(self) -> int:
        """Absolute difference between games with white and games with black."""
        played = self.played_colours()
        return abs(played.count(WHITE) - played.count(BLACK))

    def last_round_with_colour(self, colour: Colour) -> int:
        """Most recent round played with ``colour``, 0 if never."""
        rounds = [r for r, c in self.colours.items() if c == colour]
        return max(rounds) if rounds else 0

    def has_played(self, start_no: int) -> bool:
        """Whether this player's own history lists ``start_no`` as an opponent."""
        return start_no != BYE_OPPONENT and start_no in self.opponents.values()

    def rewound(self, cutoff: int) -> "Player":
        """Rebuild this player's state from rounds 1..cutoff only.

        The score is summed from the retained results rather than trusted
        from the running total.
        """
        kept = range(1, cutoff + 1)
        results = {r: self.results[r] for r in kept if r in self.results}
        bye_rounds = [r for r in self.bye_rounds if r <= cutoff]
        return Player(
            start_no=self.start_no,
            name=self.name,
            rating=self.rating,
            federation=self.federation,
            score=sum(value for value in results.values() if value is not None),
            rank=self.rank,
            opponents={r: self.opponents[r] for r in kept if r in self.opponents},
            colours={r: self.colours[r] for r in kept if r in self.colours},
            results=results,
            has_received_bye=bool(bye_rounds),
            bye_rounds=bye_rounds,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize player data to dictionary format.

        Round keys become strings so the result is JSON-safe.

        Returns:
            Dictionary containing all player data
        """
        return {
            "start_no": self.start_no,
            "name": self.name,
            "rating": self.rating,
            "federation": self.federation,
            "score": self.score,
            "rank": self.rank,
            "opponents": {str(r): o for r, o in sorted(self.opponents.items())},
            "colours": {str(r): c for r, c in sorted(self.colours.items())},
            "results": {str(r): v for r, v in sorted(self.results.items())},
            "has_received_bye": self.has_received_bye,
            "bye_rounds": list(self.bye_rounds),
        }

    @classmethod
    def from_dict(cls, player_data: Dict[str, Any]) -> "Player":
        """Create a Player instance from serialized dictionary data.

        Accepts both this project's keys and the camelCase keys produced by
        the data-acquisition layer (``startNo``, ``currentScore``,
        ``hadBye``, ``byeRounds``), and the textual colour and result tokens
        ("W", "B", "-", "1", "½", "0").

        Args:
            player_data: Dictionary containing player data

        Returns:
            Player instance

        Raises:
            InvalidTournamentDataException: If the start number is missing
        """
        start_no = _first(player_data, "start_no", "startNo")
        if start_no is None:
            raise InvalidTournamentDataException(
                f"Player record without start number: {player_data!r}"
            )
        bye_rounds = [
            int(r) for r in _first(player_data, "bye_rounds", "byeRounds", default=[])
        ]
        rating = _first(player_data, "rating")
        return cls(
            start_no=int(start_no),
            name=player_data.get("name", ""),
            rating=int(rating) if rating not in (None, "") else None,
            federation=player_data.get("federation") or None,
            score=float(_first(player_data, "score", "currentScore", default=0.0)),
            rank=player_data.get("rank"),
            opponents={
                r: int(o)
                for r, o in _round_keyed(player_data.get("opponents")).items()
                if o is not None
            },
            colours={
                r: parse_colour(c)
                for r, c in _round_keyed(
                    _first(player_data, "colours", "colors")
                ).items()
            },
            results={
                r: parse_result(v)
                for r, v in _round_keyed(player_data.get("results")).items()
            },
            has_received_bye=bool(
                _first(player_data, "has_received_bye", "hadBye", default=False)
            )
            or bool(bye_rounds),
            bye_rounds=bye_rounds,
        )

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return (
            f"Player(start_no={self.start_no}, name='{self.name}', "
            f"score={self.score})"
        )

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return f"{self.start_no}. {self.name} ({self.rating})"
