import pytest

from swissforecast.player import Player
from swissforecast.tournament import (
    PairingRecord,
    RoundData,
    TournamentInfo,
    TournamentState,
)


@pytest.fixture
def played_tournament():
    """Four players, two of three rounds published."""
    players = [
        Player(1, name="Anna", rating=2000, score=1.5),
        Player(2, name="Boris", rating=1900, score=1.5),
        Player(3, name="Chen", rating=1800, score=0.0),
        Player(4, name="Dana", rating=1700, score=1.0),
    ]
    rounds = [
        RoundData(
            1,
            [
                PairingRecord(board=1, white_no=1, black_no=3, result="1-0"),
                PairingRecord(board=2, white_no=4, black_no=2, result="0-1"),
            ],
        ),
        RoundData(
            2,
            [
                PairingRecord(board=1, white_no=2, black_no=1, result="½-½"),
                PairingRecord(board=2, white_no=4, black_no=3, result="1-0"),
            ],
        ),
    ]
    info = TournamentInfo(name="Spring Open", completed_rounds=2, total_rounds=3)
    return TournamentState.from_rounds(info, players, rounds)
