import chess
import pytest

import chess_logic
from chess_logic import GameOutcome


def test_apply_move_returns_new_position() -> None:
    fen = chess_logic.apply_move(chess.STARTING_FEN, chess.Move.from_uci("e2e4"))
    board = chess.Board(fen)
    assert board.piece_at(chess.E4).piece_type == chess.PAWN
    assert board.turn == chess.BLACK


def test_apply_move_rejects_illegal_move() -> None:
    assert chess_logic.apply_move(chess.STARTING_FEN, chess.Move.from_uci("e2e5")) is None


def test_get_possible_moves_filters_by_origin_square() -> None:
    board = chess.Board()
    moves = chess_logic.get_possible_moves(board, chess.G1)
    uci_moves = sorted(move.uci() for move in moves)
    assert uci_moves == ["g1f3", "g1h3"]


def test_legal_destinations_deduplicates_promotions() -> None:
    fen = "8/5P2/8/8/8/8/8/k5K1 w - - 0 1"
    assert chess_logic.legal_destinations(fen, chess.F7) == [chess.F8]


def test_game_status_messages() -> None:
    checkmate = chess.Board()
    for san in ("f3", "e5", "g4", "Qh4#"):
        checkmate.push_san(san)
    status = chess_logic.game_status(checkmate.fen())
    assert status.outcome is GameOutcome.CHECKMATE
    assert status.message() == "Checkmate! Black wins!"

    stalemate = chess_logic.game_status("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert stalemate.outcome is GameOutcome.STALEMATE
    assert stalemate.message() == "Stalemate! It's a draw."

    bare_kings = chess_logic.game_status("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    assert bare_kings.outcome is GameOutcome.DRAW
    assert bare_kings.reason == "Insufficient Material"

    fifty = chess_logic.game_status("4k3/8/8/8/8/8/4R3/4K3 w - - 100 80")
    assert fifty.outcome is GameOutcome.DRAW
    assert fifty.reason == "50-move rule"

    in_progress = chess_logic.game_status(chess.STARTING_FEN)
    assert in_progress.outcome is GameOutcome.ONGOING
    assert in_progress.is_over is False
    assert in_progress.message() == ""


def test_is_in_check_identifies_check_state() -> None:
    assert chess_logic.is_in_check("4k3/8/4R3/8/8/8/8/4K3 b - - 0 1") is True
    assert chess_logic.is_in_check(chess.STARTING_FEN) is False


def test_pawn_promotion_detection() -> None:
    board = chess.Board("8/5P2/8/8/8/8/8/k5K1 w - - 0 1")
    assert chess_logic.needs_promotion(board, chess.Move.from_uci("f7f8")) is True
    assert chess_logic.needs_promotion(board, chess.Move.from_uci("f7f8q")) is False
    assert chess_logic.needs_promotion(chess.Board(), chess.Move.from_uci("e2e4")) is False


@pytest.mark.parametrize(
    "text, expected",
    [
        ("e2e4", chess.Move.from_uci("e2e4")),
        ("a7a8n", chess.Move.from_uci("a7a8n")),
        (" g1f3\n", chess.Move.from_uci("g1f3")),
        ("0000", None),
        ("(none)", None),
        ("e2", None),
        ("z9z9", None),
    ],
)
def test_parse_uci_move(text, expected) -> None:
    assert chess_logic.parse_uci_move(text) == expected


def test_find_move_between_positions() -> None:
    after = chess_logic.apply_move(chess.STARTING_FEN, chess.Move.from_uci("g1f3"))
    assert chess_logic.find_move_between(chess.STARTING_FEN, after) == chess.Move.from_uci("g1f3")
    assert chess_logic.find_move_between(after, chess.STARTING_FEN) is None


def test_initial_position_normalises_and_validates() -> None:
    assert chess_logic.initial_position() == chess.STARTING_FEN
    with pytest.raises(ValueError):
        chess_logic.initial_position("rnbqkbnr/pppppppp/8/8 w")
