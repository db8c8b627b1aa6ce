"""Thin adapter over python-chess: legality, resulting positions and game status.

Positions are passed around as FEN strings; nothing outside this module builds
boards to answer rules questions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

import chess

COLOR_NAME = {chess.WHITE: "White", chess.BLACK: "Black"}


class GameOutcome(Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


@dataclass(frozen=True)
class GameStatus:
    outcome: GameOutcome
    winner: Optional[bool] = None
    reason: str = "Game in progress"

    @property
    def is_over(self) -> bool:
        return self.outcome is not GameOutcome.ONGOING

    def message(self) -> str:
        if self.outcome is GameOutcome.CHECKMATE:
            return f"Checkmate! {COLOR_NAME[self.winner]} wins!"
        if self.outcome is GameOutcome.STALEMATE:
            return "Stalemate! It's a draw."
        if self.outcome is GameOutcome.DRAW:
            return f"Draw! ({self.reason})"
        return ""


ONGOING = GameStatus(GameOutcome.ONGOING)


def initial_position(fen: Optional[str] = None) -> str:
    """Normalised FEN for ``fen`` (or the standard start). Raises ValueError if invalid."""
    board = chess.Board(fen) if fen else chess.Board()
    return board.fen()


def is_valid_move(board: chess.Board, move: chess.Move) -> bool:
    return move in board.legal_moves


def apply_move(fen: str, move: chess.Move) -> Optional[str]:
    """FEN after ``move``, or None when the move is illegal in ``fen``."""
    board = chess.Board(fen)
    if not is_valid_move(board, move):
        return None
    board.push(move)
    return board.fen()


def get_possible_moves(board: chess.Board, square: chess.Square) -> List[chess.Move]:
    return [move for move in board.legal_moves if move.from_square == square]


def legal_destinations(fen: str, square: chess.Square) -> List[chess.Square]:
    destinations: List[chess.Square] = []
    for move in get_possible_moves(chess.Board(fen), square):
        if move.to_square not in destinations:
            destinations.append(move.to_square)
    return destinations


def side_to_move(fen: str) -> bool:
    return chess.Board(fen).turn


def is_in_check(fen: str) -> bool:
    return chess.Board(fen).is_check()


def needs_promotion(board: chess.Board, move: chess.Move) -> bool:
    """True if ``move`` is a pawn reaching the last rank without a promotion piece."""
    if move.promotion is not None:
        return False
    piece = board.piece_at(move.from_square)
    if piece is None or piece.piece_type != chess.PAWN:
        return False
    rank = chess.square_rank(move.to_square)
    if (piece.color == chess.WHITE and rank != 7) or (piece.color == chess.BLACK and rank != 0):
        return False
    return is_valid_move(board, chess.Move(move.from_square, move.to_square, chess.QUEEN))


def parse_uci_move(text: str) -> Optional[chess.Move]:
    """Parse compact notation (``e2e4``, ``e7e8q``). Null or malformed moves give None."""
    text = text.strip()
    if len(text) not in (4, 5):
        return None
    try:
        move = chess.Move.from_uci(text)
    except ValueError:
        return None
    if not move:
        return None
    return move


def repetition_key(fen: str) -> str:
    # Placement, side to move, castling rights and en passant square.
    return " ".join(fen.split()[:4])


def game_status(fen: str, history: Iterable[str] = ()) -> GameStatus:
    """Terminal status of ``fen``; ``history`` (which may include ``fen``) enables repetition draws."""
    board = chess.Board(fen)
    if board.is_checkmate():
        return GameStatus(GameOutcome.CHECKMATE, winner=not board.turn, reason="Checkmate")
    if board.is_stalemate():
        return GameStatus(GameOutcome.STALEMATE, reason="Stalemate")
    if board.is_insufficient_material():
        return GameStatus(GameOutcome.DRAW, reason="Insufficient Material")
    if board.halfmove_clock >= 100:
        return GameStatus(GameOutcome.DRAW, reason="50-move rule")

    key = repetition_key(fen)
    occurrences = sum(1 for entry in history if repetition_key(entry) == key)
    if occurrences >= 3:
        return GameStatus(GameOutcome.DRAW, reason="Threefold Repetition")
    return ONGOING


def find_move_between(previous_fen: str, current_fen: str) -> Optional[chess.Move]:
    """The legal move that turns ``previous_fen`` into ``current_fen``, if any."""
    board = chess.Board(previous_fen)
    for move in board.legal_moves:
        board.push(move)
        try:
            if board.fen() == current_fen:
                return move
        finally:
            board.pop()
    return None
