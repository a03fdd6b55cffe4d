"""Core data models for tournament state and predictions.

This module defines the fundamental data structures read by the pairing
engine and produced for presentation layers.
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
from typing import Any, Dict, Iterable, List, Optional, Tuple

from swissforecast.constants import (
    BYE_OPPONENT,
    DRAW_SCORE,
    FORFEIT_RESULTS,
    FULL_POINT_BYE_SCORE,
    LOSS_SCORE,
    RESULT_BLACK_FORFEIT_WIN,
    RESULT_BLACK_WIN,
    RESULT_DRAW,
    RESULT_WHITE_FORFEIT_WIN,
    RESULT_WHITE_WIN,
    WIN_SCORE,
)
from swissforecast.exceptions import InvalidTournamentDataException
from swissforecast.player import Player
from swissforecast.type_hints import BLACK, WHITE, Pool
from swissforecast.utils import setup_logger

logger = setup_logger(__name__)

# points for (white, black) per textual result
_RESULT_POINTS = {
    RESULT_WHITE_WIN: (WIN_SCORE, LOSS_SCORE),
    RESULT_WHITE_FORFEIT_WIN: (WIN_SCORE, LOSS_SCORE),
    RESULT_BLACK_WIN: (LOSS_SCORE, WIN_SCORE),
    RESULT_BLACK_FORFEIT_WIN: (LOSS_SCORE, WIN_SCORE),
    RESULT_DRAW: (DRAW_SCORE, DRAW_SCORE),
    "1/2-1/2": (DRAW_SCORE, DRAW_SCORE),
    "0.5-0.5": (DRAW_SCORE, DRAW_SCORE),
}


@dataclass
class TournamentInfo:
    """Tournament metadata.

    Attributes:
        name: Tournament name
        tournament_id: External identifier
        completed_rounds: Number of rounds with published results
        total_rounds: Number of scheduled rounds (0 if unknown)
    """

    name: str = "Tournament"
    tournament_id: Optional[str] = None
    completed_rounds: int = 0
    total_rounds: int = 0

    def __post_init__(self) -> None:
        if self.completed_rounds < 0:
            raise InvalidTournamentDataException(
                f"completed_rounds cannot be negative: {self.completed_rounds}"
            )
        if self.total_rounds > 0 and self.completed_rounds > self.total_rounds:
            raise InvalidTournamentDataException(
                f"{self.completed_rounds} completed rounds exceed "
                f"{self.total_rounds} scheduled rounds"
            )

    @property
    def is_completed(self) -> bool:
        """Whether every scheduled round has been played."""
        return self.total_rounds > 0 and self.completed_rounds >= self.total_rounds

    def to_dict(self) -> Dict[str, Any]:
        """Serialize metadata to dictionary."""
        return {
            "name": self.name,
            "tournament_id": self.tournament_id,
            "completed_rounds": self.completed_rounds,
            "total_rounds": self.total_rounds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentInfo":
        """Deserialize metadata from dictionary."""
        tournament_id = data.get("tournament_id", data.get("id"))
        return cls(
            name=data.get("name") or "Tournament",
            tournament_id=str(tournament_id) if tournament_id is not None else None,
            completed_rounds=int(
                data.get("completed_rounds", data.get("completedRounds", 0)) or 0
            ),
            total_rounds=int(data.get("total_rounds", data.get("totalRounds", 0)) or 0),
        )


@dataclass
class PairingRecord:
    """A published pairing of a played round.

    Attributes:
        board: Board number
        white_no: Start number of the white player
        black_no: Start number of the black player (0 for a bye)
        result: Textual result ("1-0", "½-½", "F0-1", ...), None if unknown
        is_bye: Whether this record is a bye
    """

    board: int
    white_no: int
    black_no: int = BYE_OPPONENT
    result: Optional[str] = None
    is_bye: bool = False

    @property
    def is_forfeit(self) -> bool:
        """Whether the game was decided by forfeit."""
        return self.result in FORFEIT_RESULTS

    def points(self) -> Tuple[Optional[float], Optional[float]]:
        """Points scored by (white, black), None where unknown."""
        return _RESULT_POINTS.get(self.result or "", (None, None))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize pairing record to dictionary."""
        return {
            "board": self.board,
            "white_no": self.white_no,
            "black_no": self.black_no,
            "result": self.result,
            "is_bye": self.is_bye,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PairingRecord":
        """Deserialize pairing record from dictionary."""
        black_no = int(data.get("black_no", data.get("blackNo", BYE_OPPONENT)) or 0)
        return cls(
            board=int(data.get("board", 0)),
            white_no=int(data.get("white_no", data.get("whiteNo", 0))),
            black_no=black_no,
            result=data.get("result"),
            is_bye=bool(data.get("is_bye", data.get("isBye", black_no == 0))),
        )


@dataclass
class RoundData:
    """Contains all published pairings of a single round.

    Attributes:
        round_number: The round number (1-indexed)
        pairings: Pairing records in board order
    """

    round_number: int
    pairings: List[PairingRecord] = field(default_factory=list)

    @property
    def is_well_formed(self) -> bool:
        """A round counts only if at least one real game was paired."""
        return any(not pairing.is_bye for pairing in self.pairings)

    def participants(self) -> List[int]:
        """Start numbers that played a non-bye game, in board order."""
        numbers: List[int] = []
        for pairing in self.pairings:
            if pairing.is_bye:
                continue
            for start_no in (pairing.white_no, pairing.black_no):
                if start_no > 0 and start_no not in numbers:
                    numbers.append(start_no)
        return numbers

    def to_dict(self) -> Dict[str, Any]:
        """Serialize round data to dictionary."""
        return {
            "round_number": self.round_number,
            "pairings": [p.to_dict() for p in self.pairings],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], round_number: int = 0) -> "RoundData":
        """Deserialize round data from dictionary."""
        return cls(
            round_number=int(data.get("round_number", data.get("round", round_number))),
            pairings=[PairingRecord.from_dict(p) for p in data.get("pairings", [])],
        )


@dataclass
class TournamentState:
    """Players and round history of one tournament.

    A state is built once per prediction request. The pairing engine never
    mutates it; :func:`swissforecast.tournament.rewind.rewind_to_round`
    builds truncated copies.

    Attributes:
        info: Tournament metadata
        players: Start number -> Player
        rounds: Round number -> published round
    """

    info: TournamentInfo
    players: Dict[int, Player] = field(default_factory=dict)
    rounds: Dict[int, RoundData] = field(default_factory=dict)

    @property
    def next_round(self) -> int:
        """The round a prediction for this state is about."""
        return self.info.completed_rounds + 1

    def eligible_players(self, pool: Pool = None) -> List[Player]:
        """Players considered for pairing, in start-number order.

        Args:
            pool: Explicit start numbers to keep; None keeps everyone

        Returns:
            The eligible players
        """
        players = sorted(self.players.values(), key=lambda p: p.start_no)
        if pool is None:
            return players
        return [p for p in players if p.start_no in pool]

    def asymmetric_entries(self) -> List[Tuple[int, int, int]]:
        """Find history entries the opponent does not mirror.

        Returns:
            (round, start number, opponent) for every entry whose opponent
            lists someone else, a non-complementary colour or result
        """
        broken = []
        for player in self.players.values():
            for round_no, opp_no in player.opponents.items():
                if opp_no == BYE_OPPONENT or opp_no not in self.players:
                    continue
                opponent = self.players[opp_no]
                if opponent.opponents.get(round_no) != player.start_no:
                    broken.append((round_no, player.start_no, opp_no))
                    continue
                mine = player.colours.get(round_no)
                theirs = opponent.colours.get(round_no)
                if mine is not None and theirs is not None and mine == theirs:
                    broken.append((round_no, player.start_no, opp_no))
                    continue
                my_result = player.results.get(round_no)
                their_result = opponent.results.get(round_no)
                if (
                    my_result is not None
                    and their_result is not None
                    and my_result + their_result != WIN_SCORE
                ):
                    broken.append((round_no, player.start_no, opp_no))
        return sorted(broken)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the whole state to a JSON-safe dictionary."""
        return {
            "tournament": self.info.to_dict(),
            "players": {
                str(no): player.to_dict() for no, player in sorted(self.players.items())
            },
            "rounds": {
                str(no): rnd.to_dict() for no, rnd in sorted(self.rounds.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentState":
        """Build a state from already-normalised tournament data.

        Opponent entries that refer to unknown start numbers are dropped and
        asymmetric entries are logged; neither stops the prediction.

        Args:
            data: Mapping with "tournament", "players" and "rounds" entries

        Returns:
            The tournament state

        Raises:
            InvalidTournamentDataException: If the data is not a mapping or
                has no players section
        """
        if not isinstance(data, dict) or "players" not in data:
            raise InvalidTournamentDataException(
                "Tournament data must be a mapping with a 'players' section"
            )
        info = TournamentInfo.from_dict(data.get("tournament") or {})

        raw_players = data["players"]
        if isinstance(raw_players, dict):
            # records keyed by start number may omit it
            raw_players = [
                {"start_no": int(key), **record} for key, record in raw_players.items()
            ]
        players = {}
        for raw in raw_players:
            player = Player.from_dict(raw)
            if player.start_no in players:
                raise InvalidTournamentDataException(
                    f"Duplicate start number {player.start_no}"
                )
            players[player.start_no] = player

        rounds = _parse_rounds(data.get("rounds"))
        state = cls(info=info, players=players, rounds=rounds)
        state._drop_unknown_opponents()
        for round_no, start_no, opp_no in state.asymmetric_entries():
            logger.warning(
                "Round %d: history of %d against %d is not mirrored by the opponent",
                round_no,
                start_no,
                opp_no,
            )
        return state

    @classmethod
    def from_rounds(
        cls,
        info: TournamentInfo,
        players: Iterable[Player],
        rounds: Iterable[RoundData],
    ) -> "TournamentState":
        """Build a state whose histories come from published rounds.

        Each player's opponents, colours, results and bye flags are rebuilt
        from the round records; scores are kept as given (they come from the
        published standings). Forfeited games are recorded without colour and
        rounds without a real game are discarded.

        Args:
            info: Tournament metadata
            players: Players with identity, rating and score
            rounds: Published rounds

        Returns:
            The tournament state
        """
        rebuilt = {
            p.start_no: Player(
                start_no=p.start_no,
                name=p.name,
                rating=p.rating,
                federation=p.federation,
                score=p.score,
                rank=p.rank,
            )
            for p in players
        }
        kept_rounds = {}
        for rnd in sorted(rounds, key=lambda r: r.round_number):
            if not rnd.is_well_formed:
                logger.debug("Discarding round %d without games", rnd.round_number)
                continue
            kept_rounds[rnd.round_number] = rnd
            _apply_round(rebuilt, rnd)
        return cls(info=info, players=rebuilt, rounds=kept_rounds)

    def _drop_unknown_opponents(self) -> None:
        for player in self.players.values():
            for round_no, opp_no in list(player.opponents.items()):
                if opp_no != BYE_OPPONENT and opp_no not in self.players:
                    logger.warning(
                        "Player %d: round %d opponent %d is unknown, ignoring entry",
                        player.start_no,
                        round_no,
                        opp_no,
                    )
                    del player.opponents[round_no]
                    player.colours.pop(round_no, None)


def _parse_rounds(raw_rounds: Any) -> Dict[int, RoundData]:
    """Parse the rounds section, discarding rounds without games."""
    if not raw_rounds:
        return {}
    if isinstance(raw_rounds, dict):
        items = [(int(k), v) for k, v in raw_rounds.items()]
    else:
        items = [(0, v) for v in raw_rounds]
    rounds = {}
    for number, raw in items:
        rnd = RoundData.from_dict(raw, round_number=number)
        if not rnd.is_well_formed:
            logger.debug("Discarding round %d without games", rnd.round_number)
            continue
        rounds[rnd.round_number] = rnd
    return rounds


def _apply_round(players: Dict[int, Player], rnd: RoundData) -> None:
    """Record one published round into the players' histories."""
    round_no = rnd.round_number
    for pairing in rnd.pairings:
        white_points, black_points = pairing.points()
        white = players.get(pairing.white_no)
        if pairing.is_bye:
            if white is not None:
                white.opponents[round_no] = BYE_OPPONENT
                white.colours[round_no] = None
                white.results[round_no] = (
                    white_points if white_points is not None else FULL_POINT_BYE_SCORE
                )
                white.has_received_bye = True
                white.bye_rounds.append(round_no)
            continue

        black = players.get(pairing.black_no)
        if white is not None:
            white.opponents[round_no] = pairing.black_no
            white.colours[round_no] = None if pairing.is_forfeit else WHITE
            white.results[round_no] = white_points
        if black is not None:
            black.opponents[round_no] = pairing.white_no
            black.colours[round_no] = None if pairing.is_forfeit else BLACK
            black.results[round_no] = black_points


@dataclass
class ByeRecord:
    """The player receiving the bye in a predicted round."""

    start_no: int
    name: str
    rating: int

    @classmethod
    def for_player(cls, player: Player) -> "ByeRecord":
        """Build the record for ``player``."""
        return cls(start_no=player.start_no, name=player.name, rating=player.rating)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize bye record to dictionary."""
        return {"start_no": self.start_no, "name": self.name, "rating": self.rating}


def _player_summary(player: Player) -> Dict[str, Any]:
    return {
        "start_no": player.start_no,
        "name": player.name,
        "rating": player.rating,
        "score": player.score,
    }


@dataclass
class PredictedPairing:
    """A finalized pairing of the predicted round."""

    board: int
    white: Player
    black: Player

    def to_dict(self) -> Dict[str, Any]:
        """Serialize pairing with denormalised player fields."""
        return {
            "board": self.board,
            "white": _player_summary(self.white),
            "black": _player_summary(self.black),
        }


@dataclass
class PredictionResult:
    """Outcome of one prediction request.

    Attributes:
        round_number: The predicted round
        pairings: Finalized pairings in board order
        bye: The bye, if the pool was odd
        unpaired: Players no legal pairing could be found for
    """

    round_number: int
    pairings: List[PredictedPairing] = field(default_factory=list)
    bye: Optional[ByeRecord] = None
    unpaired: List[Player] = field(default_factory=list)

    def paired_numbers(self) -> List[int]:
        """All start numbers placed on a board."""
        numbers = []
        for pairing in self.pairings:
            numbers.extend([pairing.white.start_no, pairing.black.start_no])
        return numbers

    def to_dict(self) -> Dict[str, Any]:
        """Serialize prediction to dictionary."""
        return {
            "round_number": self.round_number,
            "pairings": [p.to_dict() for p in self.pairings],
            "bye": self.bye.to_dict() if self.bye else None,
            "unpaired": [_player_summary(p) for p in self.unpaired],
        }
