"""Standings table and per-player round history for presentation layers."""

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
from typing import Any, Dict, List, Optional

from swissforecast.constants import BYE_OPPONENT
from swissforecast.tournament.models import TournamentState
from swissforecast.type_hints import Colour


@dataclass
class StandingEntry:
    """One row of the standings table."""

    rank: int
    start_no: int
    name: str
    rating: int
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "start_no": self.start_no,
            "name": self.name,
            "rating": self.rating,
            "score": self.score,
        }


@dataclass
class HistoryEntry:
    """One round of a player's history as shown to users."""

    round_number: int
    opponent_no: Optional[int]
    opponent_name: str
    opponent_rating: Optional[int]
    colour: Optional[Colour]
    result: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round_number,
            "opponent_no": self.opponent_no,
            "opponent_name": self.opponent_name,
            "opponent_rating": self.opponent_rating,
            "colour": self.colour,
            "result": self.result,
        }


def build_standings(state: TournamentState) -> List[StandingEntry]:
    """Rank players by score, then rating, both descending.

    Ranks are positions in that order; equal keys fall back to start number
    so the table is stable.
    """
    ordered = sorted(
        state.players.values(), key=lambda p: (-p.score, -p.rating, p.start_no)
    )
    return [
        StandingEntry(
            rank=position,
            start_no=player.start_no,
            name=player.name,
            rating=player.rating,
            score=player.score,
        )
        for position, player in enumerate(ordered, 1)
    ]


def build_player_history(
    state: TournamentState, up_to_round: Optional[int] = None
) -> Dict[int, List[HistoryEntry]]:
    """Round-by-round history of every player.

    Args:
        state: Tournament state
        up_to_round: Last round to include, defaults to the completed rounds

    Returns:
        Start number -> one entry per round; "Bye" names a bye and "-" an
        absent or unknown opponent
    """
    last = state.info.completed_rounds if up_to_round is None else up_to_round
    history: Dict[int, List[HistoryEntry]] = {}
    for start_no, player in sorted(state.players.items()):
        entries = []
        for round_no in range(1, last + 1):
            opp_no = player.opponents.get(round_no)
            opponent = state.players.get(opp_no) if opp_no else None
            if opp_no == BYE_OPPONENT:
                opp_name = "Bye"
            elif opponent is not None:
                opp_name = opponent.name
            else:
                opp_name = "-"
            entries.append(
                HistoryEntry(
                    round_number=round_no,
                    opponent_no=opp_no,
                    opponent_name=opp_name,
                    opponent_rating=opponent.rating if opponent else None,
                    colour=player.colours.get(round_no),
                    result=player.results.get(round_no),
                )
            )
        history[start_no] = entries
    return history
