"""Owns the game and the engine session and keeps them consistent.

Replies from the engine arrive asynchronously. A reply is applied only when
it answers the coordinator's current request *and* the position it was
computed for is still the current position; undo, reset and engine restarts
all make earlier replies stale without needing the engine's cooperation.
"""

from __future__ import annotations

import itertools
from typing import Callable, List, Optional, Tuple

import chess

import difficulty
from chess_logic import COLOR_NAME, GameStatus
from difficulty import DEFAULT_TIER, DifficultySetting, TierLike
from engine_session import EngineRequest, EngineSession, EngineState, EngineTransport
from game_state import GameState, MoveRejected
from utils import ReportingLevel, debug_text, info_text, report, warning_text

TransportFactory = Callable[[], EngineTransport]
UpdateCallback = Callable[[Optional[str]], None]


class EngineDesync(RuntimeError):
    """The engine proposed a move that is illegal in the position it was sent."""

    def __init__(self, move: chess.Move, position: str) -> None:
        super().__init__(f"Engine proposed illegal move {move.uci()} in {position}")
        self.move = move
        self.position = position


class SessionCoordinator:
    def __init__(
        self,
        transport_factory: Optional[TransportFactory] = None,
        *,
        initial_fen: Optional[str] = None,
        tier: TierLike = DEFAULT_TIER,
        on_update: Optional[UpdateCallback] = None,
        engine_label: str = "Engine",
        reporting_level: ReportingLevel = ReportingLevel.BASIC,
    ) -> None:
        self.engine_label = engine_label
        self.reporting_level = reporting_level
        self.on_update = on_update
        self._game = GameState(initial_fen)
        self._setting = difficulty.resolve_or_default(tier, reporting_level)
        self._transport_factory = transport_factory
        self._request_ids = itertools.count(1)
        self._current_request_id: Optional[int] = None
        self._engine: Optional[EngineSession] = None
        self._desync: Optional[EngineDesync] = None

        if transport_factory is not None:
            self.start_engine()

    # Queries

    def current_position(self) -> str:
        return self._game.current

    def board(self) -> chess.Board:
        return self._game.board()

    def status(self) -> GameStatus:
        return self._game.status()

    @property
    def history(self) -> Tuple[str, ...]:
        return self._game.history

    @property
    def turn(self) -> bool:
        return self._game.turn

    @property
    def can_undo(self) -> bool:
        return self._game.can_undo

    @property
    def difficulty(self) -> DifficultySetting:
        return self._setting

    @property
    def engine_desync(self) -> Optional[EngineDesync]:
        return self._desync

    @property
    def engine_state(self) -> EngineState:
        if self._engine is None:
            return EngineState.UNINITIALIZED
        return self._engine.state

    @property
    def current_request_id(self) -> Optional[int]:
        return self._current_request_id

    def is_engine_ready(self) -> bool:
        return self._engine is not None and self._engine.is_ready

    def is_engine_thinking(self) -> bool:
        return self._engine is not None and self._engine.is_thinking

    def legal_destinations(self, square: chess.Square) -> List[chess.Square]:
        return self._game.legal_destinations(square)

    def last_move(self) -> Optional[chess.Move]:
        return self._game.last_move()

    def is_current(self, request: EngineRequest) -> bool:
        return (
            request.request_id == self._current_request_id
            and request.position == self._game.current
        )

    # Commands

    def apply_human_move(self, move: chess.Move) -> str:
        if self._desync is not None:
            raise MoveRejected(move, "Game halted after engine desync")

        position = self._game.apply_move(move)
        self._debug(f"Human move {move.uci()} applied")

        status = self._game.status()
        if status.is_over:
            self._info(f"Game Over: {status.message()}")
            self._notify(status.message())
            return position

        self._request_engine_move()
        self._notify()
        return position

    def on_engine_reply(self, request: EngineRequest, move: chess.Move) -> bool:
        if not self.is_current(request):
            self._debug(f"Discarding stale reply {move.uci()} for request #{request.request_id}")
            if request.request_id == self._current_request_id:
                # Position moved on under a live request; nothing else will answer it.
                self._current_request_id = None
                if self.is_engine_ready():
                    self._notify(f"{self.engine_label} ready")
            return False

        self._current_request_id = None
        try:
            self._game.apply_move(move)
        except MoveRejected:
            self._desync = EngineDesync(move, request.position)
            report(self.reporting_level, ReportingLevel.QUIET, warning_text(str(self._desync)))
            self._notify("Engine desync: start a new game")
            return False

        self._info(
            f"Engine Move: {chess.square_name(move.from_square)} -> {chess.square_name(move.to_square)}"
        )
        status = self._game.status()
        if status.is_over:
            self._info(f"Game Over: {status.message()}")
            self._notify(status.message())
        else:
            self._notify(f"{self.engine_label} played {move.uci()}")
        return True

    def undo_move(self) -> str:
        position = self._game.undo()
        self._abandon_request()
        self._debug("Move undone")
        self._notify("Move undone")
        return position

    def reset_game(self) -> str:
        self._info("Resetting game...")
        position = self._game.reset()
        self._abandon_request()
        self._desync = None
        if self._engine is not None:
            self._engine.new_game()
        self._notify("Game Reset")
        return position

    def set_difficulty_tier(self, tier: TierLike) -> DifficultySetting:
        setting = difficulty.resolve_or_default(tier, self.reporting_level)
        self._setting = setting
        if self._engine is not None:
            self._engine.set_difficulty(setting)
        self._info(f"Difficulty set to {setting.label}")
        self._notify(f"Difficulty: {setting.label}")
        return setting

    def start_engine(self) -> bool:
        if self._transport_factory is None:
            report(self.reporting_level, ReportingLevel.QUIET, warning_text("No engine configured"))
            return False

        self._shutdown_engine()
        self._current_request_id = None
        session = EngineSession(
            self._transport_factory(),
            self.on_engine_reply,
            self._setting,
            request_ids=self._request_ids,
            on_state_change=self._handle_engine_state,
            on_failure=self._handle_engine_failure,
            label=self.engine_label,
            reporting_level=self.reporting_level,
        )
        self._engine = session
        return not session.is_closed

    def restart_engine(self) -> bool:
        self._info(f"Restarting {self.engine_label}...")
        started = self.start_engine()
        self._notify(f"{self.engine_label} restarting" if started else f"{self.engine_label} failed to start")
        return started

    def shutdown(self) -> None:
        self._shutdown_engine()

    # Internals

    def _request_engine_move(self) -> None:
        engine = self._engine
        if engine is None or not engine.is_ready:
            self._debug(f"{self.engine_label} not ready; move request skipped")
            return

        request = engine.request_move(self._game.current, self._setting.search_depth)
        if engine.is_thinking:
            self._current_request_id = request.request_id

    def _abandon_request(self) -> None:
        self._current_request_id = None
        if self._engine is not None:
            self._engine.cancel()

    def _shutdown_engine(self) -> None:
        if self._engine is None:
            return
        self._engine.shutdown()
        self._engine = None

    def _handle_engine_state(self, state: EngineState) -> None:
        if state is EngineState.READY and self._current_request_id is None:
            self._notify(f"{self.engine_label} ready")
        elif state is EngineState.THINKING:
            self._notify(f"{self.engine_label} thinking as {COLOR_NAME[self._game.turn]}")
        else:
            self._notify()

    def _handle_engine_failure(self, reason: str) -> None:
        self._current_request_id = None
        self._notify(f"{self.engine_label} stopped responding")

    def _notify(self, message: Optional[str] = None) -> None:
        if self.on_update is not None:
            self.on_update(message)

    def _info(self, message: str) -> None:
        report(self.reporting_level, ReportingLevel.BASIC, info_text(message))

    def _debug(self, message: str) -> None:
        report(self.reporting_level, ReportingLevel.VERBOSE, debug_text(message))
