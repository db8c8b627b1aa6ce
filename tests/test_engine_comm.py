import os
import sys

import chess
import pytest

pytest.importorskip("PySide6")
pytestmark = pytest.mark.gui

from PySide6.QtCore import QCoreApplication
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from difficulty import DifficultyTier, resolve
from engine_comm import QProcessTransport, engine_command
from engine_session import EngineSession, EngineState, EngineTransportFailure
from utils import ReportingLevel

FAKE_ENGINE = os.path.join(os.path.dirname(__file__), "fake_uci_engine.py")


def wait_until(predicate, timeout_ms=5000):
    waited = 0
    while not predicate() and waited < timeout_ms:
        QTest.qWait(20)
        waited += 20
    return predicate()


@pytest.fixture(scope="session")
def app():
    application = QCoreApplication.instance()
    if application is None:
        # A QApplication so GUI tests sharing this session can create widgets.
        application = QApplication([])
    return application


@pytest.fixture()
def session_events():
    return {"replies": [], "failures": []}


@pytest.fixture()
def engine(app, session_events):
    program, arguments = engine_command(FAKE_ENGINE)
    session = EngineSession(
        QProcessTransport(program, arguments),
        lambda request, move: session_events["replies"].append((request, move)),
        resolve(DifficultyTier.EASY),
        on_failure=session_events["failures"].append,
        reporting_level=ReportingLevel.QUIET,
    )
    yield session
    session.shutdown()


def test_engine_command_runs_python_scripts_with_interpreter() -> None:
    assert engine_command("engines/fish.py", ["--x"]) == (sys.executable, ["engines/fish.py", "--x"])
    assert engine_command("/usr/bin/stockfish") == ("/usr/bin/stockfish", [])


def test_handshake_and_bestmove_over_qprocess(engine, session_events) -> None:
    assert wait_until(lambda: engine.state is EngineState.READY)

    request = engine.request_move(chess.STARTING_FEN, 5)
    assert wait_until(lambda: session_events["replies"])

    replied_request, move = session_events["replies"][0]
    assert replied_request == request
    assert move in chess.Board().legal_moves
    assert engine.state is EngineState.READY
    assert session_events["failures"] == []


def test_engine_exit_is_reported_as_failure(engine, session_events) -> None:
    assert wait_until(lambda: engine.state is EngineState.READY)
    engine._transport.send("crash")

    assert wait_until(lambda: session_events["failures"])
    assert session_events["failures"][0] == "Engine exited with code 3"
    assert engine.state is EngineState.UNINITIALIZED


def test_missing_program_fails_to_open(app) -> None:
    transport = QProcessTransport("/nonexistent/engine-binary", start_timeout_ms=500)
    with pytest.raises(EngineTransportFailure):
        transport.open(lambda line: None, lambda reason: None)
    with pytest.raises(EngineTransportFailure):
        transport.send("uci")
