import pytest

from swissforecast.exceptions import InvalidRoundException
from swissforecast.player import Player
from swissforecast.tournament import (
    PairingRecord,
    RoundData,
    TournamentInfo,
    TournamentState,
    actual_pool_for_round,
    rewind_to_round,
)


def _build_state():
    """Six players, three rounds; player 6 withdraws after round 2."""
    pairings = {
        1: [(1, 4, "1-0"), (5, 2, "0-1"), (3, 6, "½-½")],
        2: [(2, 1, "½-½"), (4, 3, "0-1"), (6, 5, "1-0")],
        3: [(1, 3, "1-0"), (2, 4, "1-0"), (5, 0, "1")],
    }
    rounds = [
        RoundData(
            number,
            [
                PairingRecord(board, white, black, result, is_bye=black == 0)
                for board, (white, black, result) in enumerate(boards, 1)
            ],
        )
        for number, boards in pairings.items()
    ]
    players = [Player(n, name=f"Player {n}", rating=2300 - 50 * n) for n in range(1, 7)]
    state = TournamentState.from_rounds(
        TournamentInfo(name="Test Open", completed_rounds=3, total_rounds=5),
        players,
        rounds,
    )
    # published totals, as the data source would give them
    for player in state.players.values():
        player.score = sum(r for r in player.results.values() if r is not None)
    return state


def test_rewind_truncates_history_and_recomputes_scores():
    state = _build_state()
    rewound = rewind_to_round(state, 3)

    assert rewound.info.completed_rounds == 2
    assert rewound.info.total_rounds == 5
    assert sorted(rewound.rounds) == [1, 2]
    assert rewound.players[1].score == 1.5
    assert rewound.players[5].score == 0.0
    assert rewound.players[5].opponents == {1: 2, 2: 6}
    assert not rewound.players[5].has_received_bye


def test_rewind_never_mutates_the_original():
    state = _build_state()
    before = state.to_dict()
    rewind_to_round(state, 2)
    assert state.to_dict() == before


def test_rewind_ignores_running_totals():
    state = _build_state()
    state.players[1].score = 42.0
    assert rewind_to_round(state, 4).players[1].score == 2.5


def test_rewind_is_idempotent():
    state = _build_state()
    once = rewind_to_round(state, 3)
    twice = rewind_to_round(once, 3)
    assert twice.to_dict() == once.to_dict()


def test_rewind_composes():
    state = _build_state()
    for target in range(1, 5):
        stepped = rewind_to_round(rewind_to_round(state, target + 1), target)
        assert stepped.to_dict() == rewind_to_round(state, target).to_dict()


@pytest.mark.parametrize("target", [0, 1])
def test_rewind_to_the_start_leaves_no_history(target):
    rewound = rewind_to_round(_build_state(), target)
    assert rewound.info.completed_rounds == 0
    assert rewound.rounds == {}
    for player in rewound.players.values():
        assert player.score == 0.0
        assert player.opponents == {}


def test_rewind_beyond_the_tournament_is_allowed():
    state = _build_state()
    rewound = rewind_to_round(state, 40)
    assert rewound.info.completed_rounds == 5
    assert sorted(rewound.rounds) == [1, 2, 3]


def test_rewind_rejects_negative_round():
    with pytest.raises(InvalidRoundException):
        rewind_to_round(_build_state(), -1)


def test_actual_pool_excludes_bye_and_withdrawn_players():
    state = _build_state()
    assert actual_pool_for_round(state, 3) == {1, 2, 3, 4}
    assert actual_pool_for_round(state, 1) == {1, 2, 3, 4, 5, 6}
    assert actual_pool_for_round(state, 4) is None
