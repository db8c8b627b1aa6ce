"""Minimal UCI responder used to drive the QProcess transport in tests."""

import sys

import chess


def main():
    board = chess.Board()
    for raw in sys.stdin:
        parts = raw.split()
        if not parts:
            continue
        command = parts[0]
        if command == "uci":
            print("id name FakeFish")
            print("uciok")
        elif command == "isready":
            print("readyok")
        elif command == "position" and parts[1:2] == ["fen"]:
            board = chess.Board(" ".join(parts[2:8]))
        elif command == "go":
            move = next(iter(sorted(board.legal_moves, key=lambda m: m.uci())), None)
            print(f"bestmove {move.uci() if move else '(none)'}")
        elif command == "crash":
            sys.exit(3)
        elif command == "quit":
            break
        sys.stdout.flush()


if __name__ == "__main__":
    main()
