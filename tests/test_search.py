import logging

from swissforecast.config import PairingConfig
from swissforecast.pairing import search
from swissforecast.pairing.context import PairingContext
from swissforecast.pairing.search import (
    bracket_penalty,
    can_play,
    complete_pairing,
    pair_heterogeneous_bracket,
    pair_score_group,
    try_pairing,
)
from swissforecast.player import Player
from swissforecast.type_hints import BLACK, WHITE


def _player(start_no, played=(), colours=()):
    """A player who met ``played`` and had ``colours`` against outsiders."""
    opponents = {r: opp for r, opp in enumerate(played, 1)}
    offset = len(opponents)
    for r, _ in enumerate(colours, offset + 1):
        opponents[r] = 500 + start_no * 10 + r
    return Player(
        start_no,
        opponents=opponents,
        colours={offset + r: c for r, c in enumerate(colours, 1)},
    )


def _numbers(result):
    return sorted(
        tuple(sorted((c.player1.start_no, c.player2.start_no)))
        for c in result.pairings
    )


def test_can_play_checks_both_histories():
    p1 = _player(1, played=[2])
    p2 = _player(2)  # history is one-sided
    assert not can_play(p1, p2)
    assert not can_play(p2, p1)
    assert not can_play(p1, p1)
    assert can_play(p1, _player(3))


def test_try_pairing_scores_conflicts():
    s1 = [_player(1, played=[3]), _player(2)]
    s2 = [_player(3), _player(4), _player(5)]
    result = try_pairing(s1, s2)
    assert _numbers(result) == [(2, 4)]
    assert result.conflicts == 1
    assert result.penalty == 10000
    assert sorted(p.start_no for p in result.unpaired) == [1, 3, 5]


def test_identity_assignment_accepted_when_free():
    s1 = [_player(1), _player(2)]
    s2 = [_player(3), _player(4)]
    result = pair_score_group(s1, s2)
    assert _numbers(result) == [(1, 3), (2, 4)]
    assert result.penalty == 0


def test_exhaustive_search_avoids_repeats():
    s1 = [_player(1, played=[3]), _player(2)]
    s2 = [_player(3), _player(4)]
    result = pair_score_group(s1, s2)
    assert _numbers(result) == [(1, 4), (2, 3)]
    assert result.unpaired == []


def test_exhaustive_search_minimises_colour_cost():
    s1 = [_player(1, colours=[BLACK]), _player(2, colours=[WHITE])]
    s2 = [_player(3, colours=[BLACK]), _player(4, colours=[WHITE])]
    result = pair_score_group(s1, s2)
    assert _numbers(result) == [(1, 4), (2, 3)]
    assert result.penalty == 0


def test_unsatisfiable_pair_is_left_unpaired():
    result = pair_score_group([_player(1, played=[2])], [_player(2)])
    assert result.pairings == []
    assert sorted(p.start_no for p in result.unpaired) == [1, 2]
    assert result.penalty == 10000


def test_local_search_resolves_large_bracket():
    size = 10
    s1 = [_player(n, played=[n + size]) for n in range(1, size + 1)]
    s2 = [_player(n + size) for n in range(1, size + 1)]

    result = pair_score_group(s1, s2)

    assert result.conflicts == 0
    assert len(result.pairings) == size
    for candidate in result.pairings:
        assert can_play(candidate.player1, candidate.player2)


def test_heterogeneous_bracket_picks_a_legal_native():
    floater = _player(2, played=[5])
    natives = [_player(7), _player(5), _player(6)]

    result = pair_heterogeneous_bracket([floater], natives)

    assert _numbers(result) == [(2, 6)]
    assert [p.start_no for p in result.remaining_natives] == [5, 7]
    assert result.unpaired == []


def test_heterogeneous_bracket_returns_unplaceable_floaters():
    floater = _player(1, played=[4, 5])
    natives = [_player(4), _player(5)]

    result = pair_heterogeneous_bracket([floater], natives)

    assert result.pairings == []
    assert [p.start_no for p in result.unpaired] == [1]
    assert [p.start_no for p in result.remaining_natives] == [4, 5]


def test_heterogeneous_bracket_with_more_floaters_than_natives():
    floaters = [_player(1), _player(2), _player(3)]
    natives = [_player(8)]

    result = pair_heterogeneous_bracket(floaters, natives)

    assert len(result.pairings) == 1
    assert result.remaining_natives == []
    assert len(result.unpaired) == 2


def test_many_floaters_pair_against_the_first_natives():
    floaters = [_player(1, played=[10]), _player(2), _player(3), _player(4)]
    natives = [_player(n) for n in (14, 12, 10, 13, 11)]

    result = pair_heterogeneous_bracket(floaters, natives)

    assert _numbers(result) == [(1, 11), (2, 10), (3, 12), (4, 13)]
    assert [p.start_no for p in result.remaining_natives] == [14]
    assert result.unpaired == []


def test_wide_native_window_falls_back_to_first_natives():
    # three floaters fit the combination search, nine natives do not
    floaters = [_player(1, played=[10, 11, 12]), _player(2), _player(3)]
    natives = [_player(n) for n in range(10, 19)]

    result = pair_heterogeneous_bracket(floaters, natives)

    assert _numbers(result) == [(2, 11), (3, 12)]
    assert [p.start_no for p in result.unpaired] == [1]
    assert [p.start_no for p in result.remaining_natives] == [
        10,
        13,
        14,
        15,
        16,
        17,
        18,
    ]


def test_bracket_penalty_is_computed_once(monkeypatch):
    calls = []
    original = search.pair_score_group

    def counting(s1, s2, context=None):
        calls.append(1)
        return original(s1, s2, context)

    monkeypatch.setattr(search, "pair_score_group", counting)
    context = PairingContext()
    s1 = [_player(1, played=[3]), _player(2)]
    s2 = [_player(3), _player(4)]

    assert bracket_penalty(s1, s2, context) == 0
    assert bracket_penalty(s1, s2, context) == 0
    assert len(calls) == 1


def test_exhaustive_search_respects_node_limit(monkeypatch):
    # everyone may only play 11, so each row looks cheap on its own
    s1 = [_player(n, played=range(12, 19)) for n in range(1, 9)]
    s2 = [_player(n) for n in range(11, 19)]
    context = PairingContext(PairingConfig(max_permutations=5))
    steps = []
    monkeypatch.setattr(context, "step", lambda: steps.append(1))

    result = pair_score_group(s1, s2, context)

    assert result.conflicts == 7
    assert _numbers(result) == [(1, 11)]
    assert len(steps) == 5


def test_complete_pairing_finds_the_only_legal_pairing():
    players = [
        _player(1, played=[2, 3]),
        _player(2, played=[1]),
        _player(3, played=[1, 4]),
        _player(4, played=[3]),
    ]

    pairings = complete_pairing(players)

    assert sorted(tuple(sorted(p.start_numbers)) for p in pairings) == [
        (1, 4),
        (2, 3),
    ]


def test_complete_pairing_reports_impossible_pools():
    assert complete_pairing([_player(1), _player(2), _player(3)]) is None
    blocked = [
        _player(1, played=[2, 3]),
        _player(2, played=[1, 3]),
        _player(3),
        _player(4),
    ]
    assert complete_pairing(blocked) is None


def test_complete_pairing_prefers_equal_scores():
    players = [_player(n) for n in range(1, 5)]
    players[0].score = players[2].score = 1.0

    pairings = complete_pairing(players)

    assert sorted(tuple(sorted(p.start_numbers)) for p in pairings) == [
        (1, 3),
        (2, 4),
    ]


def test_complete_pairing_gives_up_after_node_limit(caplog):
    players = [_player(n) for n in range(1, 7)]
    context = PairingContext(PairingConfig(repair_node_limit=1))

    with caplog.at_level(logging.WARNING, logger="swissforecast"):
        assert complete_pairing(players, context) is None
    assert "Gave up pairing 6 players" in caplog.text
