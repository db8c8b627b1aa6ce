"""UCI session with the opponent process.

All traffic goes through a single pending-request slot: at most one ``go`` is
outstanding at a time and a ``bestmove`` is only handed on for the request
that is still live. Nothing here blocks; engine output is pushed in line by
line through :meth:`EngineSession.handle_line` from the event loop.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol, Union

import chess

from chess_logic import parse_uci_move
from difficulty import DifficultySetting
from utils import (
    ReportingLevel,
    debug_text,
    info_text,
    received_text,
    report,
    sending_text,
    warning_text,
)


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    NEGOTIATING = "negotiating"
    READY = "ready"
    THINKING = "thinking"


class EngineBusy(RuntimeError):
    """A move was requested while the engine was not ready for one."""


class EngineTransportFailure(RuntimeError):
    """The engine process could not be started, written to, or has exited."""


@dataclass(frozen=True)
class IdentAck:
    pass


@dataclass(frozen=True)
class ReadyAck:
    pass


@dataclass(frozen=True)
class BestMove:
    move: Optional[chess.Move]
    ponder: Optional[chess.Move] = None


@dataclass(frozen=True)
class Unrecognized:
    line: str


EngineMessage = Union[IdentAck, ReadyAck, BestMove, Unrecognized]


def parse_engine_line(line: str) -> EngineMessage:
    tokens = line.split()
    if not tokens:
        return Unrecognized(line)

    keyword = tokens[0]
    if keyword == "uciok":
        return IdentAck()
    if keyword == "readyok":
        return ReadyAck()
    if keyword == "bestmove":
        move = parse_uci_move(tokens[1]) if len(tokens) >= 2 else None
        ponder = None
        if len(tokens) >= 4 and tokens[2] == "ponder":
            ponder = parse_uci_move(tokens[3])
        return BestMove(move, ponder)
    return Unrecognized(line)


class EngineTransport(Protocol):
    def open(
        self, on_line: Callable[[str], None], on_failure: Callable[[str], None]
    ) -> None:
        ...

    def send(self, command: str) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass(frozen=True)
class EngineRequest:
    request_id: int
    position: str
    search_depth: int


ReplyHandler = Callable[[EngineRequest, chess.Move], None]


class EngineSession:
    """Protocol state machine for one engine process. Not restartable."""

    def __init__(
        self,
        transport: EngineTransport,
        on_reply: ReplyHandler,
        setting: DifficultySetting,
        *,
        request_ids: Optional[Iterator[int]] = None,
        on_state_change: Optional[Callable[[EngineState], None]] = None,
        on_failure: Optional[Callable[[str], None]] = None,
        label: str = "Engine",
        reporting_level: ReportingLevel = ReportingLevel.BASIC,
    ) -> None:
        self.label = label
        self.reporting_level = reporting_level
        self._transport = transport
        self._on_reply = on_reply
        self._on_state_change = on_state_change
        self._on_failure = on_failure
        self._request_ids = request_ids if request_ids is not None else itertools.count(1)

        self._state = EngineState.UNINITIALIZED
        self._closed = False
        self._pending: Optional[EngineRequest] = None
        self._cancelled = False
        self._setting = setting
        self._applied_setting: Optional[DifficultySetting] = None
        self._new_game_pending = False

        try:
            transport.open(self.handle_line, self.handle_transport_failure)
        except EngineTransportFailure as exc:
            self._fail(str(exc))
            return

        self._set_state(EngineState.NEGOTIATING)
        self._send("uci")

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    @property
    def is_thinking(self) -> bool:
        return self._state is EngineState.THINKING

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_request(self) -> Optional[EngineRequest]:
        return self._pending

    @property
    def setting(self) -> DifficultySetting:
        return self._setting

    def request_move(self, position: str, search_depth: int) -> EngineRequest:
        if self._state is not EngineState.READY:
            raise EngineBusy(
                f"[{self.label}] cannot start a search while {self._state.value}"
            )

        request = EngineRequest(next(self._request_ids), position, search_depth)
        self._pending = request
        self._cancelled = False
        self._set_state(EngineState.THINKING)
        if self._send(f"position fen {position}"):
            self._send(f"go depth {search_depth}")
        return request

    def cancel(self) -> bool:
        """Ask the engine to stop early. Its eventual reply is dropped either way."""
        if self._state is not EngineState.THINKING or self._cancelled:
            return False
        self._cancelled = True
        self._send("stop")
        return True

    def set_difficulty(self, setting: DifficultySetting) -> None:
        self._setting = setting
        if self._state is EngineState.READY:
            self._apply_setting()
        else:
            self._debug(f"Skill Level {setting.skill_level} deferred ({self._state.value})")

    def new_game(self) -> None:
        if self._closed:
            return
        if self._state is EngineState.READY:
            self._new_game_pending = False
            self._send("ucinewgame")
        else:
            self._new_game_pending = True

    def shutdown(self) -> None:
        if self._closed:
            return
        if self._state is not EngineState.UNINITIALIZED:
            self._send("quit")
        self._closed = True
        self._pending = None
        self._cancelled = False
        self._set_state(EngineState.UNINITIALIZED)
        self._transport.close()

    def handle_line(self, line: str) -> None:
        if self._closed:
            return
        line = line.strip()
        if not line:
            return

        message = parse_engine_line(line)
        if isinstance(message, Unrecognized):
            report(
                self.reporting_level,
                ReportingLevel.VERBOSE,
                received_text(f"[{self.label}] {line}"),
            )
            return

        report(self.reporting_level, ReportingLevel.BASIC, received_text(f"[{self.label}] {line}"))
        if isinstance(message, IdentAck):
            self._handle_ident_ack()
        elif isinstance(message, ReadyAck):
            self._handle_ready_ack()
        elif isinstance(message, BestMove):
            self._handle_best_move(message)

    def handle_transport_failure(self, reason: str) -> None:
        if self._closed:
            return
        self._fail(reason)

    def _handle_ident_ack(self) -> None:
        if self._state is not EngineState.NEGOTIATING:
            self._debug(f"Ignoring uciok while {self._state.value}")
            return
        self._send("isready")

    def _handle_ready_ack(self) -> None:
        if self._state is not EngineState.NEGOTIATING:
            return
        self._flush_deferred()
        if self._closed:
            return
        report(self.reporting_level, ReportingLevel.BASIC, info_text(f"{self.label} ready"))
        self._set_state(EngineState.READY)

    def _handle_best_move(self, message: BestMove) -> None:
        if self._state is not EngineState.THINKING:
            self._debug(f"Dropping bestmove received while {self._state.value}")
            return

        request = self._pending
        cancelled = self._cancelled
        self._pending = None
        self._cancelled = False
        self._flush_deferred()
        if self._closed:
            return
        self._set_state(EngineState.READY)

        if cancelled or request is None:
            self._debug("Dropping bestmove for cancelled search")
            return
        if message.move is None:
            report(
                self.reporting_level,
                ReportingLevel.QUIET,
                warning_text(f"[{self.label}] No best move found."),
            )
            return
        self._on_reply(request, message.move)

    def _flush_deferred(self) -> None:
        # Runs while the engine is idle, before READY is announced.
        if self._closed:
            return
        self._apply_setting()
        if self._new_game_pending and not self._closed:
            self._new_game_pending = False
            self._send("ucinewgame")

    def _apply_setting(self) -> None:
        setting = self._setting
        if setting == self._applied_setting:
            return
        if self._send(setting.option_command()):
            self._applied_setting = setting

    def _send(self, command: str) -> bool:
        if self._closed:
            return False
        report(self.reporting_level, ReportingLevel.BASIC, sending_text(f"[{self.label}] {command}"))
        try:
            self._transport.send(command)
        except EngineTransportFailure as exc:
            self._fail(str(exc))
            return False
        return True

    def _fail(self, reason: str) -> None:
        report(
            self.reporting_level,
            ReportingLevel.QUIET,
            warning_text(f"[{self.label}] stopped responding: {reason}"),
        )
        self._closed = True
        self._pending = None
        self._cancelled = False
        self._set_state(EngineState.UNINITIALIZED)
        self._transport.close()
        if self._on_failure is not None:
            self._on_failure(reason)

    def _set_state(self, state: EngineState) -> None:
        if state is self._state:
            return
        previous = self._state
        self._state = state
        self._debug(f"[{self.label}] {previous.value} -> {state.value}")
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _debug(self, message: str) -> None:
        report(self.reporting_level, ReportingLevel.VERBOSE, debug_text(message))
