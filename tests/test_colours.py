import pytest

from swissforecast.config import PairingConfig
from swissforecast.pairing.colours import assign_colours, colour_tiebreak
from swissforecast.pairing.context import PairingContext
from swissforecast.player import Player
from swissforecast.type_hints import BLACK, WHITE


def _player(start_no, *colours):
    return Player(
        start_no,
        colours={r: c for r, c in enumerate(colours, 1)},
        opponents={r: 100 + start_no * 10 + r for r in range(1, len(colours) + 1)},
    )


def test_conflict_cost_is_the_weaker_preference():
    cost = PairingContext().colour_cost
    absolute = _player(1, WHITE, WHITE)  # wants black
    strong = _player(2, WHITE, BLACK, WHITE)  # wants black
    mild = _player(3, BLACK, WHITE)  # wants black
    assert cost(absolute, strong) == 10
    assert cost(absolute, mild) == 1
    assert cost(absolute, _player(4, WHITE, WHITE)) == 100


def test_no_conflict_costs_nothing():
    cost = PairingContext().colour_cost
    assert cost(_player(1, WHITE), _player(2, BLACK)) == 0
    assert cost(_player(3, WHITE), _player(4)) == 0
    assert cost(_player(5), _player(6)) == 0


def test_conflict_cost_uses_configured_weights():
    config = PairingConfig(preference_weights={"absolute": 7, "strong": 5, "mild": 3})
    p1, p2 = _player(1, BLACK, WHITE), _player(2, BLACK, WHITE)
    assert PairingContext(config).colour_cost(p1, p2) == 3


def test_single_preference_is_granted():
    wants_white = _player(1, BLACK)
    neutral = _player(2)
    assert assign_colours(wants_white, neutral, 1) == (wants_white, neutral)
    assert assign_colours(neutral, wants_white, 2) == (wants_white, neutral)


def test_different_preferences_are_both_granted():
    wants_black = _player(1, WHITE)
    wants_white = _player(2, BLACK)
    assert assign_colours(wants_black, wants_white, 1) == (wants_white, wants_black)


def test_same_preference_goes_to_wider_imbalance():
    strong = _player(1, WHITE, BLACK, WHITE)  # imbalance 1
    absolute = _player(2, WHITE, WHITE)  # imbalance 2
    assert colour_tiebreak(strong, absolute, BLACK) is absolute
    assert assign_colours(strong, absolute, 1) == (strong, absolute)


def test_same_preference_goes_to_who_had_it_longer_ago():
    p1 = _player(1, BLACK, WHITE)  # black in round 1
    p2 = _player(2, WHITE, BLACK, BLACK, WHITE)  # black in round 3
    assert p1.colour_preference() == p2.colour_preference() == BLACK
    assert assign_colours(p1, p2, 1) == (p2, p1)
    assert assign_colours(p2, p1, 1) == (p2, p1)


def test_same_preference_full_tie_goes_to_first_player():
    p1 = _player(5, WHITE, BLACK)
    p2 = _player(3, WHITE, BLACK)
    assert assign_colours(p1, p2, 1) == (p1, p2)
    assert assign_colours(p2, p1, 1) == (p2, p1)


@pytest.mark.parametrize("board, white_no", [(1, 3), (2, 7), (3, 3), (4, 7)])
def test_no_preferences_alternate_by_board(board, white_no):
    higher, lower = _player(3), _player(7)
    white, black = assign_colours(lower, higher, board)
    assert white.start_no == white_no
    assert {white.start_no, black.start_no} == {3, 7}
