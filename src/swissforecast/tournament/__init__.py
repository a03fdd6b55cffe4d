"""Tournament state, reconstruction and standings."""

from swissforecast.tournament.models import (
    ByeRecord,
    PairingRecord,
    PredictedPairing,
    PredictionResult,
    RoundData,
    TournamentInfo,
    TournamentState,
)
from swissforecast.tournament.rewind import (
    actual_pool_for_round,
    check_target_round,
    rewind_to_round,
)
from swissforecast.tournament.standings import build_player_history, build_standings

__all__ = [
    "ByeRecord",
    "PairingRecord",
    "PredictedPairing",
    "PredictionResult",
    "RoundData",
    "TournamentInfo",
    "TournamentState",
    "actual_pool_for_round",
    "build_player_history",
    "build_standings",
    "check_target_round",
    "rewind_to_round",
]
