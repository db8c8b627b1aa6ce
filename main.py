# MAIN
import argparse
import os
import shutil
import sys
from typing import Callable, Optional

import chess_logic
from coordinator import SessionCoordinator
from difficulty import DEFAULT_TIER
from engine_session import EngineTransport
from utils import ReportingLevel, info_text, warning_text

DEFAULT_ENGINE = "stockfish"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play chess against a UCI engine")
    parser.add_argument(
        "-fen", help="Set the initial board state to the given FEN string"
    )
    parser.add_argument("-dev", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--engine",
        default=DEFAULT_ENGINE,
        help="UCI engine executable (or .py script) to play against",
    )
    parser.add_argument(
        "--difficulty",
        default=DEFAULT_TIER.name.lower(),
        help="Opponent strength: easy, medium, hard or expert",
    )
    parser.add_argument(
        "--assist",
        action="store_true",
        help="Highlight legal destinations of the selected piece",
    )
    parser.add_argument(
        "--black",
        action="store_true",
        help="Start with the board flipped (Black at the bottom)",
    )
    return parser.parse_args(argv)


def resolve_engine_path(candidate: str) -> Optional[str]:
    if os.path.isfile(candidate):
        return os.path.abspath(candidate)
    return shutil.which(candidate)


def engine_label_for(path: str) -> str:
    name = os.path.splitext(os.path.basename(path))[0]
    return name or "Engine"


def build_transport_factory(path: str) -> Callable[[], EngineTransport]:
    from engine_comm import QProcessTransport, engine_command

    program, arguments = engine_command(path)

    def factory() -> EngineTransport:
        return QProcessTransport(program, arguments)

    return factory


def resolve_initial_fen(fen: Optional[str]) -> Optional[str]:
    if not fen:
        return None
    try:
        return chess_logic.initial_position(fen)
    except ValueError:
        print(warning_text(f"Invalid FEN '{fen}'. Starting from the standard position"))
        return None


def build_coordinator(args, reporting_level: ReportingLevel) -> SessionCoordinator:
    engine_path = resolve_engine_path(args.engine)
    transport_factory = None
    engine_label = "Engine"
    if engine_path is None:
        print(warning_text(f"Engine not found: {args.engine}. Playing without an opponent"))
    else:
        transport_factory = build_transport_factory(engine_path)
        engine_label = engine_label_for(engine_path)
        print(info_text(f"{engine_label} -> {engine_path}"))

    return SessionCoordinator(
        transport_factory,
        initial_fen=resolve_initial_fen(args.fen),
        tier=args.difficulty,
        engine_label=engine_label,
        reporting_level=reporting_level,
    )


def main(argv=None):
    args = parse_args(argv)
    reporting_level = ReportingLevel.VERBOSE if args.dev else ReportingLevel.BASIC

    # Local imports keep the CLI helpers importable without a display.
    from PySide6.QtWidgets import QApplication
    from gui import ChessGUI

    app = QApplication(sys.argv)
    coordinator = build_coordinator(args, reporting_level)
    gui = ChessGUI(
        coordinator,
        dev=args.dev,
        reporting_level=reporting_level,
        assistance=args.assist,
        flipped=args.black,
    )
    app.aboutToQuit.connect(coordinator.shutdown)

    gui.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
