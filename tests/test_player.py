import pytest

from swissforecast.constants import (
    PREFERENCE_ABSOLUTE,
    PREFERENCE_MILD,
    PREFERENCE_STRONG,
)
from swissforecast.exceptions import InvalidTournamentDataException
from swissforecast.player import Player, parse_colour, parse_result
from swissforecast.type_hints import BLACK, WHITE


def _player_with_colours(*colours):
    return Player(
        1,
        colours={r: c for r, c in enumerate(colours, 1)},
        opponents={r: 10 + r for r in range(1, len(colours) + 1)},
    )


def test_no_games_means_no_preference():
    player = Player(1)
    assert player.colour_preference() is None
    assert player.preference_strength() is None
    assert player.colour_imbalance() == 0


def test_two_same_colours_force_the_other():
    player = _player_with_colours(WHITE, WHITE)
    assert player.colour_preference() == BLACK
    assert player.preference_strength() == PREFERENCE_ABSOLUTE


def test_imbalance_gives_strong_preference():
    player = _player_with_colours(WHITE, BLACK, WHITE)
    assert player.colour_preference() == BLACK
    assert player.preference_strength() == PREFERENCE_STRONG
    assert player.colour_imbalance() == 1


def test_balanced_history_alternates():
    player = _player_with_colours(WHITE, BLACK)
    assert player.colour_preference() == WHITE
    assert player.preference_strength() == PREFERENCE_MILD


def test_forfeits_do_not_count_as_colours():
    player = _player_with_colours(WHITE, None, WHITE)
    assert player.played_colours() == [WHITE, WHITE]
    assert player.colour_preference() == BLACK
    assert player.preference_strength() == PREFERENCE_ABSOLUTE


def test_last_round_with_colour():
    player = _player_with_colours(WHITE, BLACK, WHITE, BLACK)
    assert player.last_round_with_colour(WHITE) == 3
    assert player.last_round_with_colour(BLACK) == 4
    assert Player(2).last_round_with_colour(WHITE) == 0


def test_has_played_ignores_byes():
    player = Player(1, opponents={1: 7, 2: 0})
    assert player.has_played(7)
    assert not player.has_played(0)
    assert not player.has_played(3)


@pytest.mark.parametrize("start_no", [0, -3, "4"])
def test_invalid_start_number_rejected(start_no):
    with pytest.raises(InvalidTournamentDataException):
        Player(start_no)


def test_token_parsing():
    assert parse_colour("W") == WHITE
    assert parse_colour("b") == BLACK
    assert parse_colour("-") is None
    assert parse_result("1") == 1.0
    assert parse_result("½") == 0.5
    assert parse_result("=") == 0.5
    assert parse_result("0") == 0.0
    assert parse_result(0.5) == 0.5
    assert parse_result("-") is None
    assert parse_result("??") is None


def test_from_dict_accepts_camel_case_input():
    player = Player.from_dict(
        {
            "startNo": 3,
            "name": "Doe, Jane",
            "rating": 2105,
            "currentScore": 1.5,
            "opponents": {"1": 8, "2": 0},
            "colors": {"1": "B", "2": "-"},
            "results": {"1": "½", "2": "1"},
            "hadBye": True,
            "byeRounds": [2],
        }
    )
    assert player.start_no == 3
    assert player.score == 1.5
    assert player.opponents == {1: 8, 2: 0}
    assert player.colours == {1: BLACK, 2: None}
    assert player.results == {1: 0.5, 2: 1.0}
    assert player.has_received_bye
    assert player.bye_rounds == [2]


def test_from_dict_requires_start_number():
    with pytest.raises(InvalidTournamentDataException):
        Player.from_dict({"name": "Nobody"})


def test_to_dict_round_trip():
    player = Player(
        5,
        name="Smith",
        rating=1900,
        score=1.0,
        opponents={1: 2, 2: 0},
        colours={1: WHITE, 2: None},
        results={1: 0.0, 2: 1.0},
        has_received_bye=True,
        bye_rounds=[2],
    )
    assert Player.from_dict(player.to_dict()).to_dict() == player.to_dict()


def test_rewound_recomputes_score_and_byes():
    player = Player(
        4,
        score=10.0,  # deliberately wrong running total
        opponents={1: 2, 2: 0, 3: 6},
        colours={1: WHITE, 2: None, 3: BLACK},
        results={1: 1.0, 2: 1.0, 3: 0.5},
        has_received_bye=True,
        bye_rounds=[2],
    )

    before_round_2 = player.rewound(1)
    assert before_round_2.score == 1.0
    assert before_round_2.opponents == {1: 2}
    assert not before_round_2.has_received_bye
    assert before_round_2.bye_rounds == []

    before_round_4 = player.rewound(3)
    assert before_round_4.score == 2.5
    assert before_round_4.has_received_bye

    # the original is untouched
    assert player.score == 10.0
    assert 3 in player.opponents
