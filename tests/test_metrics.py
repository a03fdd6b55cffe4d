from swissforecast.comparison import RoundComparison, backtest, compare_round
from swissforecast.exceptions import PairingTimeoutException
from swissforecast.pairing import DutchSwissEngine
from swissforecast.player import Player
from swissforecast.tournament import (
    PairingRecord,
    PredictedPairing,
    PredictionResult,
    RoundData,
)


def _prediction(*boards):
    return PredictionResult(
        round_number=1,
        pairings=[
            PredictedPairing(board=board, white=Player(white), black=Player(black))
            for board, white, black in boards
        ],
    )


def test_compare_round_levels():
    actual = RoundData(
        1,
        [
            PairingRecord(board=1, white_no=1, black_no=2, result="1-0"),
            PairingRecord(board=2, white_no=3, black_no=4, result="0-1"),
            PairingRecord(board=3, white_no=5, black_no=6),
            PairingRecord(board=4, white_no=7, black_no=8),
            PairingRecord(board=5, white_no=9, is_bye=True),
        ],
    )
    prediction = _prediction((1, 1, 2), (2, 4, 3), (4, 5, 6), (3, 7, 9))

    comparison = compare_round(prediction, actual)

    assert comparison.total_boards == 4
    assert comparison.pairing_matches == 3
    assert comparison.board_matches == 2
    assert comparison.exact_matches == 1
    assert comparison.pairing_rate == 75
    assert comparison.board_rate == 50
    assert comparison.exact_rate == 25


def test_comparison_without_boards():
    comparison = RoundComparison(round_number=3)
    assert comparison.pairing_rate == 0
    assert str(comparison).startswith("Round 3: 0/0 pairings (0%)")


def test_backtest(played_tournament):
    comparisons = backtest(played_tournament)

    assert [c.round_number for c in comparisons] == [1, 2]
    first, second = comparisons
    assert (first.total_boards, first.exact_matches) == (2, 2)
    assert (second.pairing_matches, second.board_matches) == (2, 2)
    assert second.exact_matches == 1
    assert second.to_dict()["exact_matches"] == 1


def test_backtest_skips_rounds_that_fail(played_tournament):
    class FlakyEngine(DutchSwissEngine):
        def predict(self, state, pool=None, target_round=None):
            if target_round == 1:
                raise PairingTimeoutException("too slow")
            return super().predict(state, pool, target_round)

    comparisons = backtest(played_tournament, FlakyEngine())
    assert [c.round_number for c in comparisons] == [2]
