"""Authoritative position and undo history for a single game."""

from __future__ import annotations

from typing import List, Optional, Tuple

import chess

import chess_logic
from chess_logic import GameStatus


class MoveRejected(Exception):
    """The rules engine refused a move; the game is unchanged."""

    def __init__(self, move: Optional[chess.Move], reason: str = "Illegal move") -> None:
        super().__init__(f"{reason}: {move}" if move is not None else reason)
        self.move = move
        self.reason = reason


class NoHistory(Exception):
    """Undo requested at the initial position."""


class GameState:
    """Stack of FEN positions; the last entry is the current position."""

    def __init__(self, initial_fen: Optional[str] = None) -> None:
        self._initial = chess_logic.initial_position(initial_fen)
        self._history: List[str] = [self._initial]

    @property
    def initial(self) -> str:
        return self._initial

    @property
    def current(self) -> str:
        return self._history[-1]

    @property
    def history(self) -> Tuple[str, ...]:
        return tuple(self._history)

    @property
    def turn(self) -> bool:
        return chess_logic.side_to_move(self.current)

    @property
    def can_undo(self) -> bool:
        return len(self._history) > 1

    def __len__(self) -> int:
        return len(self._history)

    def board(self) -> chess.Board:
        return chess.Board(self.current)

    def apply_move(self, move: chess.Move) -> str:
        new_position = chess_logic.apply_move(self.current, move)
        if new_position is None:
            raise MoveRejected(move)
        self._history.append(new_position)
        return new_position

    def undo(self) -> str:
        if not self.can_undo:
            raise NoHistory("No moves to undo")
        self._history.pop()
        return self.current

    def reset(self) -> str:
        self._history = [self._initial]
        return self.current

    def status(self) -> GameStatus:
        return chess_logic.game_status(self.current, self._history)

    def legal_destinations(self, square: chess.Square) -> List[chess.Square]:
        return chess_logic.legal_destinations(self.current, square)

    def last_move(self) -> Optional[chess.Move]:
        if not self.can_undo:
            return None
        return chess_logic.find_move_between(self._history[-2], self.current)
