"""JaVaFo compatibility layer for Swiss Forecast.

This module delegates pairing to the JaVaFo engine: the tournament is
written as a TRF16 file, ``java -jar javafo.jar <file> -p`` pairs the next
round, and its output is read back into a prediction.
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

import os
import subprocess
import tempfile
from typing import Dict, List, Optional, Tuple

from swissforecast.config import PairingConfig
from swissforecast.constants import (
    BYE_OPPONENT,
    DRAW_SCORE,
    HALF_POINT_BYE_SCORE,
    TRF_FEDERATION_CODE,
    TRF_NAME_WIDTH,
    TRF_TOURNAMENT_TYPE,
    WIN_SCORE,
)
from swissforecast.exceptions import (
    ConfigurationException,
    ExternalEngineException,
    PairingTimeoutException,
)
from swissforecast.player import Player
from swissforecast.tournament.models import (
    ByeRecord,
    PredictedPairing,
    PredictionResult,
    TournamentState,
)
from swissforecast.tournament.rewind import check_target_round
from swissforecast.type_hints import BLACK, WHITE, Pool
from swissforecast.utils import setup_logger
from swissforecast.utils.command_runner import run_command

logger = setup_logger(__name__)

# (opponent, colour code, result code) of one round in a 001 line
RoundEntry = Tuple[int, str, str]

_ABSENT: RoundEntry = (BYE_OPPONENT, "-", "-")
_HALF_POINT_BYE: RoundEntry = (BYE_OPPONENT, "-", "H")


def _unplayed_result_code(result: Optional[float]) -> str:
    """Result code of a bye or forfeited game."""
    if result == WIN_SCORE:
        return "+"
    if result == DRAW_SCORE:
        return "H"
    return "-"


def _played_result_code(result: Optional[float]) -> str:
    if result is None:
        return "-"
    if result == WIN_SCORE:
        return "1"
    if result == DRAW_SCORE:
        return "="
    return "0"


def _round_entries(
    player: Player, completed_rounds: int
) -> Tuple[List[RoundEntry], float]:
    """Round entries of one player and the points of inferred byes.

    A round missing from the history counts as a half-point bye when the
    player has a recorded game later on, and as an absence otherwise.
    """
    last_recorded = max(player.opponents, default=0)
    entries: List[RoundEntry] = []
    inferred_points = 0.0

    for round_no in range(1, completed_rounds + 1):
        if round_no not in player.opponents:
            if round_no < last_recorded:
                entries.append(_HALF_POINT_BYE)
                inferred_points += HALF_POINT_BYE_SCORE
            else:
                entries.append(_ABSENT)
            continue

        opponent = player.opponents[round_no]
        colour = player.colours.get(round_no)
        result = player.results.get(round_no)
        if opponent == BYE_OPPONENT:
            entries.append((BYE_OPPONENT, "-", _unplayed_result_code(result)))
        elif colour is None:
            entries.append((opponent, "-", _unplayed_result_code(result)))
        else:
            code = "w" if colour == WHITE else "b" if colour == BLACK else "-"
            entries.append((opponent, code, _played_result_code(result)))

    return entries, inferred_points


def format_player_line(
    start_no: int,
    name: str,
    rating: int,
    federation: str,
    points: float,
    rank: int,
    rounds: List[RoundEntry],
) -> str:
    """Format a TRF16 ``001`` player line."""
    line = (
        f"001 {start_no:>4}"
        " m"
        "    "
        f"{name[:TRF_NAME_WIDTH]:<{TRF_NAME_WIDTH}}"
        f"{rating:>4}"
        f" {federation:<3}"
        f"{'':12}"
        f"{'':5}"
        f"{'':8}"
        f"{points:>4.1f}"
        f" {rank:>4}"
    )
    for opponent, colour, result in rounds:
        if opponent == BYE_OPPONENT:
            line += f"  0000 - {result}"
        else:
            line += f"  {opponent:>4} {colour} {result}"
    return line


def build_trf(state: TournamentState, next_round: int, pool: Pool = None) -> str:
    """Build a TRF16 file asking for the pairing of ``next_round``.

    Only rounds before ``next_round`` are written and points are summed from
    them, so a full state can be used to pair a historical round. Players
    outside ``pool`` are marked absent in the round being paired.

    Args:
        state: Tournament state
        next_round: Round to pair
        pool: Start numbers allowed to play, None for every player

    Returns:
        The TRF content
    """
    completed = max(next_round - 1, 0)
    total_rounds = state.info.total_rounds or next_round
    lines = [
        f"012 {state.info.name}",
        f"032 {TRF_FEDERATION_CODE}",
        f"062 {len(state.players)}",
        f"092 {TRF_TOURNAMENT_TYPE}",
        f"XXR {total_rounds}",
    ]

    for start_no, player in sorted(state.players.items()):
        entries, points = _round_entries(player, completed)
        if pool is not None and start_no not in pool:
            entries.append(_ABSENT)
        points += sum(
            result
            for round_no, result in player.results.items()
            if round_no <= completed and result is not None
        )
        lines.append(
            format_player_line(
                start_no,
                player.name or "Unknown",
                player.rating,
                player.federation or "",
                points,
                start_no,
                entries,
            )
        )

    return "\n".join(lines) + "\n"


def parse_javafo_output(
    output_text: str, state: TournamentState, round_number: int
) -> PredictionResult:
    """Parse JaVaFo pairing output.

    The first line holds the number of pairs, each following line a white
    and a black start number; a ``0`` partner marks the bye. Boards follow
    the output order.

    Raises:
        ExternalEngineException: If the output is empty or names unknown
            players
    """
    lines = [line.strip() for line in output_text.splitlines() if line.strip()]
    if not lines:
        raise ExternalEngineException("JaVaFo produced no output")
    try:
        pair_count = int(lines[0].split()[0])
    except ValueError as e:
        raise ExternalEngineException(
            f"Unexpected JaVaFo output: {lines[0]!r}"
        ) from e

    players: Dict[int, Player] = state.players
    result = PredictionResult(round_number=round_number)
    for line in lines[1 : pair_count + 1]:
        parts = line.split()
        if len(parts) < 2:
            continue
        try:
            white_no, black_no = int(parts[0]), int(parts[1])
        except ValueError:
            logger.warning("Skipping unreadable JaVaFo line %r", line)
            continue
        if BYE_OPPONENT in (white_no, black_no):
            bye_no = white_no if black_no == BYE_OPPONENT else black_no
            if bye_no not in players:
                raise ExternalEngineException(f"JaVaFo paired unknown player {bye_no}")
            result.bye = ByeRecord.for_player(players[bye_no])
            continue
        if white_no not in players or black_no not in players:
            raise ExternalEngineException(
                f"JaVaFo paired unknown players {white_no} - {black_no}"
            )
        result.pairings.append(
            PredictedPairing(
                board=len(result.pairings) + 1,
                white=players[white_no],
                black=players[black_no],
            )
        )
    return result


class JaVaFoEngine:
    """Pairing engine delegating to an external JaVaFo installation."""

    name = "javafo"

    def __init__(self, config: Optional[PairingConfig] = None) -> None:
        self.config = config or PairingConfig()

    def predict(
        self,
        state: TournamentState,
        pool: Pool = None,
        target_round: Optional[int] = None,
    ) -> PredictionResult:
        """Pair a round with JaVaFo.

        Args:
            state: Tournament state, normally the full one; history after the
                paired round is used only to infer missing byes
            pool: Start numbers allowed to play, None for every player
            target_round: Round to pair, defaults to ``state.next_round``

        Returns:
            The pairing produced by JaVaFo

        Raises:
            ConfigurationException: If no JaVaFo jar is configured
            ExternalEngineException: If java is missing, fails or prints nothing
            InvalidRoundException: If target_round lies outside the tournament
            PairingTimeoutException: If JaVaFo outlives the configured timeout
        """
        if not self.config.javafo_jar:
            raise ConfigurationException("No JaVaFo jar configured (javafo_jar)")

        next_round = target_round if target_round is not None else state.next_round
        check_target_round(state, next_round)
        trf = build_trf(state, next_round, pool)

        fd, trf_path = tempfile.mkstemp(prefix="trf", suffix=".trf")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(trf)
            cmd = [
                self.config.java_path,
                "-jar",
                self.config.javafo_jar,
                trf_path,
                "-p",
            ]
            try:
                proc = run_command(
                    cmd, "Running JaVaFo", timeout=self.config.javafo_timeout
                )
            except FileNotFoundError as e:
                raise ExternalEngineException(
                    f"Java executable not found: {self.config.java_path}"
                ) from e
            except subprocess.TimeoutExpired as e:
                raise PairingTimeoutException(
                    f"JaVaFo did not finish within {self.config.javafo_timeout}s"
                ) from e
        finally:
            try:
                os.unlink(trf_path)
            except OSError:
                logger.warning("Could not remove temporary file %s", trf_path)

        if not proc:
            raise ExternalEngineException(
                f"JaVaFo failed (exit {proc.returncode}): "
                f"{(proc.stdout + proc.stderr).strip()}"
            )
        return parse_javafo_output(proc.stdout, state, next_round)
