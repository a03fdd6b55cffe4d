import os
import subprocess

import pytest

from swissforecast.compatibility import javafo
from swissforecast.compatibility.javafo import (
    JaVaFoEngine,
    build_trf,
    format_player_line,
    parse_javafo_output,
)
from swissforecast.config import PairingConfig
from swissforecast.exceptions import (
    ConfigurationException,
    ExternalEngineException,
    InvalidRoundException,
    PairingTimeoutException,
)
from swissforecast.player import Player
from swissforecast.tournament import TournamentInfo, TournamentState
from swissforecast.type_hints import BLACK, WHITE
from swissforecast.utils.command_runner import CommandResult


def _state():
    players = [
        Player(
            1,
            name="Alice Anderson",
            rating=2100,
            federation="ENG",
            score=2.0,
            opponents={1: 2, 2: 3},
            colours={1: WHITE, 2: BLACK},
            results={1: 1.0, 2: 1.0},
        ),
        Player(
            2,
            name="Bob Brown",
            rating=1950,
            score=0.5,
            opponents={1: 1, 3: 3},
            colours={1: BLACK, 3: WHITE},
            results={1: 0.0, 3: 0.5},
        ),
        Player(
            3,
            name="Carol Clark",
            rating=1800,
            score=1.5,
            opponents={2: 1, 3: 2},
            colours={2: WHITE, 3: BLACK},
            results={2: 0.0, 3: 0.5},
        ),
    ]
    return TournamentState(
        info=TournamentInfo(name="Club Open", completed_rounds=3, total_rounds=5),
        players={p.start_no: p for p in players},
    )


def test_format_player_line_columns():
    line = format_player_line(
        1, "Alice Anderson", 2100, "ENG", 1.5, 1, [(5, "w", "1"), (0, "-", "H")]
    )
    assert line[:8] == "001    1"
    assert line[8:14] == " m    "
    assert line[14:47] == "Alice Anderson".ljust(33)
    assert line[47:51] == "2100"
    assert line[51:55] == " ENG"
    assert line[55:80] == " " * 25
    assert line[80:84] == " 1.5"
    assert line[84:89] == "    1"
    assert line[89:] == "     5 w 1  0000 - H"


def test_format_player_line_truncates_long_names():
    line = format_player_line(12, "X" * 40, 0, "", 0.0, 12, [])
    assert line[14:47] == "X" * 33
    assert line[47:51] == "   0"
    assert len(line) == 89


def test_build_trf_headers():
    lines = build_trf(_state(), 4).splitlines()
    assert lines[:5] == [
        "012 Club Open",
        "032 ENG",
        "062 3",
        "092 Individual: Swiss-System",
        "XXR 5",
    ]
    assert [line[:8] for line in lines[5:]] == [
        "001    1",
        "001    2",
        "001    3",
    ]


def test_build_trf_infers_half_point_bye_and_absence():
    lines = build_trf(_state(), 4).splitlines()
    bob = lines[6]
    # round 2 missing but played round 3: half-point bye, counted in points
    assert bob[89:] == "     1 b 0  0000 - H     3 w ="
    assert bob[80:84] == " 1.0"

    carol = lines[7]
    # round 1 missing ahead of recorded games: half-point bye
    assert carol[89:] == "  0000 - H     1 w 0     2 b ="


def test_build_trf_for_historical_round_uses_earlier_rounds_only():
    lines = build_trf(_state(), 2).splitlines()
    assert lines[5][80:84] == " 1.0"
    assert lines[5][89:] == "     2 w 1"
    # later games make the missing first round a half-point bye
    assert lines[7][89:] == "  0000 - H"
    assert lines[7][80:84] == " 0.5"


def test_build_trf_marks_players_outside_pool_absent():
    lines = build_trf(_state(), 4, pool={1, 3}).splitlines()
    assert lines[6].endswith("  0000 - -")
    assert lines[7].endswith("     2 b =")


def test_parse_output_with_bye():
    result = parse_javafo_output("2\n3 1\n2 0\n", _state(), 4)
    assert result.round_number == 4
    assert len(result.pairings) == 1
    pairing = result.pairings[0]
    assert (pairing.board, pairing.white.start_no, pairing.black.start_no) == (1, 3, 1)
    assert result.bye.start_no == 2
    assert result.bye.name == "Bob Brown"


def test_parse_empty_output():
    with pytest.raises(ExternalEngineException):
        parse_javafo_output("  \n", _state(), 4)


def test_parse_unknown_player():
    with pytest.raises(ExternalEngineException):
        parse_javafo_output("1\n1 9\n", _state(), 4)


def test_missing_jar_is_a_configuration_error():
    with pytest.raises(ConfigurationException):
        JaVaFoEngine(PairingConfig()).predict(_state())


@pytest.fixture
def engine():
    return JaVaFoEngine(PairingConfig(javafo_jar="/opt/javafo.jar", java_path="java"))


def test_predict_runs_javafo(monkeypatch, engine):
    calls = []

    def fake_run(cmd, description="", cwd=None, timeout=None):
        calls.append(cmd)
        with open(cmd[3], encoding="utf-8") as f:
            assert f.readline() == "012 Club Open\n"
        return CommandResult(0, "1\n1 2\n3 0\n", "")

    monkeypatch.setattr(javafo, "run_command", fake_run)
    result = engine.predict(_state())

    cmd = calls[0]
    assert cmd[:3] == ["java", "-jar", "/opt/javafo.jar"]
    assert cmd[4] == "-p"
    assert not os.path.exists(cmd[3])
    assert result.round_number == 4
    assert [(p.white.start_no, p.black.start_no) for p in result.pairings] == [(1, 2)]
    assert result.bye.start_no == 3


def test_predict_target_round(monkeypatch, engine):
    seen = {}

    def fake_run(cmd, description="", cwd=None, timeout=None):
        with open(cmd[3], encoding="utf-8") as f:
            seen["trf"] = f.read()
        return CommandResult(0, "1\n1 3\n2 0\n", "")

    monkeypatch.setattr(javafo, "run_command", fake_run)
    result = engine.predict(_state(), pool={1, 2, 3}, target_round=2)

    assert result.round_number == 2
    alice = seen["trf"].splitlines()[5]
    assert alice[89:] == "     2 w 1"


@pytest.mark.parametrize("target_round", [0, 7])
def test_predict_rejects_round_outside_tournament(monkeypatch, engine, target_round):
    def fake_run(*args, **kwargs):
        raise AssertionError("JaVaFo must not be started")

    monkeypatch.setattr(javafo, "run_command", fake_run)
    with pytest.raises(InvalidRoundException):
        engine.predict(_state(), target_round=target_round)


def test_predict_failure(monkeypatch, engine):
    monkeypatch.setattr(
        javafo, "run_command", lambda *a, **kw: CommandResult(1, "", "boom")
    )
    with pytest.raises(ExternalEngineException, match="boom"):
        engine.predict(_state())


def test_predict_java_missing(monkeypatch, engine):
    def fake_run(*args, **kwargs):
        raise FileNotFoundError("java")

    monkeypatch.setattr(javafo, "run_command", fake_run)
    with pytest.raises(ExternalEngineException):
        engine.predict(_state())


def test_predict_timeout(monkeypatch, engine):
    paths = []

    def fake_run(cmd, description="", cwd=None, timeout=None):
        paths.append(cmd[3])
        raise subprocess.TimeoutExpired(cmd, timeout)

    monkeypatch.setattr(javafo, "run_command", fake_run)
    with pytest.raises(PairingTimeoutException) as excinfo:
        engine.predict(_state())
    assert excinfo.value.retryable
    assert not os.path.exists(paths[0])
