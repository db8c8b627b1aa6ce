# GUI
import sys
from typing import Dict, List, Optional, Set

import chess
from PySide6.QtCore import Qt, QSize
from PySide6.QtGui import QFont, QColor, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QGridLayout,
    QPushButton,
    QLabel,
    QVBoxLayout,
    QHBoxLayout,
    QDialog,
    QComboBox,
    QCheckBox,
)

import chess_logic
import utils
from coordinator import SessionCoordinator
from difficulty import tier_labels
from engine_session import EngineState
from game_state import MoveRejected, NoHistory
from utils import ReportingLevel

ENGINE_STATE_TEXT = {
    EngineState.UNINITIALIZED: "offline",
    EngineState.NEGOTIATING: "connecting",
    EngineState.READY: "ready",
    EngineState.THINKING: "thinking",
}

PROMOTION_PIECES = {
    "queen": chess.QUEEN,
    "rook": chess.ROOK,
    "bishop": chess.BISHOP,
    "knight": chess.KNIGHT,
}


class PromotionDialog(QDialog):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Pawn Promotion")
        self.setMinimumWidth(220)
        self.setStyleSheet(
            """
            QDialog { background-color: #1b1b1b; color: #f2f2f2; }
            QComboBox {
                background-color: #2a2a2a;
                color: #f2f2f2;
                border-radius: 6px;
                padding: 6px 8px;
                border: 1px solid #3c3c3c;
            }
            QPushButton {
                background-color: #f2f2f2;
                color: #111111;
                border: none;
                border-radius: 6px;
                padding: 6px 12px;
                font-weight: 600;
            }
            QPushButton:hover { background-color: #d0d0d0; }
            """
        )
        layout = QVBoxLayout(self)
        layout.setContentsMargins(18, 18, 18, 18)
        layout.setSpacing(12)

        self.combo = QComboBox()
        self.combo.addItems(["Queen", "Rook", "Bishop", "Knight"])
        layout.addWidget(self.combo)

        button = QPushButton("OK")
        button.setCursor(Qt.PointingHandCursor)
        button.clicked.connect(self.accept)
        layout.addWidget(button)

    def get_promotion_piece(self):
        return self.combo.currentText().lower()


class ChessGUI(QMainWindow):
    def __init__(
        self,
        coordinator: SessionCoordinator,
        dev=False,
        reporting_level: ReportingLevel = ReportingLevel.BASIC,
        assistance=False,
        flipped=False,
    ):
        super().__init__()
        self.coordinator = coordinator
        self.dev = dev
        self.reporting_level = reporting_level
        self.assistance = assistance
        self.flipped = flipped
        self.selected_square: Optional[int] = None
        self.square_font = QFont("Segoe UI Symbol", 28)
        self.control_button_font = QFont("Segoe UI", 11)
        self.squares: Dict[int, QPushButton] = {}
        self.file_labels: List[QLabel] = []
        self.rank_labels: List[QLabel] = []
        self.apply_theme()
        print(utils.info_text("Starting Game..."))
        if self.dev:
            print(utils.debug_text("Debug Mode ENABLED"))

        self.init_ui()
        coordinator.on_update = self.handle_coordinator_update

    def apply_theme(self):
        app = QApplication.instance()
        if app and app.style().objectName().lower() != "fusion":
            QApplication.setStyle("Fusion")

        palette = QPalette()
        palette.setColor(QPalette.Window, QColor("#111111"))
        palette.setColor(QPalette.WindowText, QColor("#f2f2f2"))
        palette.setColor(QPalette.Base, QColor("#111111"))
        palette.setColor(QPalette.Text, QColor("#f2f2f2"))
        palette.setColor(QPalette.Button, QColor("#f2f2f2"))
        palette.setColor(QPalette.ButtonText, QColor("#111111"))
        palette.setColor(QPalette.Highlight, QColor("#2e7d32"))
        palette.setColor(QPalette.HighlightedText, QColor("#ffffff"))

        if app:
            app.setPalette(palette)

        self.setStyleSheet(
            """
            QMainWindow { background-color: #111111; }
            QLabel { color: #f2f2f2; }
            QLabel#turnIndicator { font-size: 18px; font-weight: 600; }
            QLabel#statusIndicator { color: #ffd54f; font-size: 14px; }
            QLabel#infoIndicator { color: #9e9e9e; font-size: 12px; }
            QWidget#boardContainer {
                background-color: #0b0b0b;
                border-radius: 12px;
                padding: 6px;
            }
            QPushButton[panel="control"] {
                background-color: #f2f2f2;
                color: #111111;
                border: none;
                border-radius: 8px;
                padding: 6px 10px;
            }
            QPushButton[panel="control"]:hover { background-color: #d0d0d0; }
            QPushButton[panel="control"]:disabled { background-color: #5a5a5a; }
            QCheckBox { color: #f2f2f2; }
            """
        )

    def style_control_button(self, button):
        button.setProperty("panel", "control")
        button.setFont(self.control_button_font)
        button.setCursor(Qt.PointingHandCursor)
        button.setFocusPolicy(Qt.NoFocus)
        button.setMinimumWidth(72)
        button.style().unpolish(button)
        button.style().polish(button)
        button.update()

    def init_ui(self):
        self.setWindowTitle("NightBoard")
        self.setMinimumSize(450, 700)

        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(8, 8, 8, 8)
        main_layout.setSpacing(6)

        self.turn_indicator = QLabel("")
        self.turn_indicator.setObjectName("turnIndicator")
        self.turn_indicator.setAlignment(Qt.AlignCenter)
        self.turn_indicator.setFont(QFont("Segoe UI Semibold", 20))
        main_layout.addWidget(self.turn_indicator)

        self.status_indicator = QLabel("")
        self.status_indicator.setObjectName("statusIndicator")
        self.status_indicator.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(self.status_indicator)

        self.info_indicator = QLabel("Game Started")
        self.info_indicator.setObjectName("infoIndicator")
        self.info_indicator.setAlignment(Qt.AlignCenter)
        self.info_indicator.setFont(QFont("Segoe UI", 11))
        main_layout.addWidget(self.info_indicator)

        board_widget = QWidget()
        board_widget.setObjectName("boardContainer")
        self.grid_layout = QGridLayout(board_widget)
        self.grid_layout.setContentsMargins(0, 0, 0, 0)
        self.grid_layout.setSpacing(0)
        self.grid_layout.setColumnStretch(0, 0)
        for col in range(1, 9):
            self.grid_layout.setColumnStretch(col, 1)
        main_layout.addWidget(board_widget)

        label_font = QFont("Segoe UI", 11)
        label_font.setBold(True)
        for i in range(8):
            file_label = QLabel("")
            file_label.setAlignment(Qt.AlignCenter)
            file_label.setFont(label_font)
            self.grid_layout.addWidget(file_label, 8, i + 1)
            self.file_labels.append(file_label)

            rank_label = QLabel("")
            rank_label.setAlignment(Qt.AlignCenter)
            rank_label.setFont(label_font)
            self.grid_layout.addWidget(rank_label, i, 0)
            self.rank_labels.append(rank_label)

        for square in chess.SQUARES:
            button = QPushButton("")
            button.setFixedSize(QSize(48, 48))
            button.setFont(self.square_font)
            button.setCursor(Qt.PointingHandCursor)
            button.setFocusPolicy(Qt.NoFocus)
            button.clicked.connect(self.on_square_clicked)
            self.squares[square] = button
        self.place_squares()

        button_layout = QHBoxLayout()
        button_layout.setSpacing(10)
        button_layout.setContentsMargins(0, 12, 0, 0)
        main_layout.addLayout(button_layout)

        new_game_button = QPushButton("New Game")
        new_game_button.clicked.connect(self.reset_game)
        self.style_control_button(new_game_button)
        button_layout.addWidget(new_game_button)

        self.undo_button = QPushButton("Undo Move")
        self.undo_button.clicked.connect(self.undo_move)
        self.style_control_button(self.undo_button)
        button_layout.addWidget(self.undo_button)

        flip_button = QPushButton("Flip Board")
        flip_button.clicked.connect(self.flip_board)
        self.style_control_button(flip_button)
        button_layout.addWidget(flip_button)
        button_layout.addStretch(1)

        engine_row = QHBoxLayout()
        engine_row.setSpacing(10)
        main_layout.addLayout(engine_row)

        engine_row.addWidget(QLabel("Difficulty:"))
        self.difficulty_combo = QComboBox()
        for tier, label in tier_labels().items():
            self.difficulty_combo.addItem(label, int(tier))
        current_index = self.difficulty_combo.findData(int(self.coordinator.difficulty.tier))
        self.difficulty_combo.setCurrentIndex(max(0, current_index))
        self.difficulty_combo.currentIndexChanged.connect(self.change_difficulty)
        engine_row.addWidget(self.difficulty_combo)

        restart_engine_button = QPushButton("Restart Engine")
        restart_engine_button.clicked.connect(self.restart_engine)
        self.style_control_button(restart_engine_button)
        engine_row.addWidget(restart_engine_button)
        engine_row.addStretch(1)

        assist_row = QHBoxLayout()
        main_layout.addLayout(assist_row)
        self.assistance_checkbox = QCheckBox("Show Legal Moves")
        self.assistance_checkbox.setChecked(self.assistance)
        self.assistance_checkbox.toggled.connect(self.set_assistance)
        assist_row.addWidget(self.assistance_checkbox)
        assist_row.addStretch(1)

        self.engine_indicator = QLabel("")
        self.engine_indicator.setObjectName("infoIndicator")
        assist_row.addWidget(self.engine_indicator)

        self.update_board()
        utils.center_on_screen(self)

    def place_squares(self):
        files = "abcdefgh"
        for square, button in self.squares.items():
            file_index = chess.square_file(square)
            rank_index = chess.square_rank(square)
            if self.flipped:
                row, col = rank_index, 7 - file_index
            else:
                row, col = 7 - rank_index, file_index
            self.grid_layout.addWidget(button, row, col + 1)

        for i in range(8):
            self.file_labels[i].setText(files[7 - i] if self.flipped else files[i])
            self.rank_labels[i].setText(str(i + 1) if self.flipped else str(8 - i))

    def update_board(self, info_text=None):
        board = self.coordinator.board()
        last_move = self.coordinator.last_move()
        highlighted: Set[int] = set()
        if self.assistance and self.selected_square is not None:
            highlighted = set(self.coordinator.legal_destinations(self.selected_square))

        for square, button in self.squares.items():
            piece = board.piece_at(square)
            button.setText(utils.get_piece_unicode(piece) if piece else "")
            button.setStyleSheet(
                self.get_square_style(board, square, last_move=last_move, highlighted=highlighted)
            )

        self.turn_indicator.setText(
            "Turn: White" if board.turn == chess.WHITE else "Turn: Black"
        )

        if self.coordinator.engine_desync is not None:
            self.status_indicator.setText("Engine desync! Start a new game.")
        else:
            self.status_indicator.setText(self.coordinator.status().message())

        self.undo_button.setEnabled(self.coordinator.can_undo)
        engine_state = ENGINE_STATE_TEXT[self.coordinator.engine_state]
        self.engine_indicator.setText(f"{self.coordinator.engine_label}: {engine_state}")

        if info_text:
            self.set_info_message(info_text)

    def get_square_style(self, board, square, last_move=None, highlighted=()):
        square_style = {
            "light_square": "#222222",
            "dark_square": "#111111",
            "selected_color": "#4f6f52",
            "prev_moved_color": "#3d4f3f",
            "attacked_color": "#8b2e2e",
        }

        is_light = (chess.square_rank(square) + chess.square_file(square)) % 2 == 1
        square_color = (
            square_style["light_square"] if is_light else square_style["dark_square"]
        )
        piece = board.piece_at(square)
        text_color = "#f2f2f2"
        if piece and piece.color == chess.BLACK:
            text_color = "#9e9e9e"

        border = "1px solid rgba(255, 255, 255, 0.05)"
        if square == self.selected_square:
            square_color = square_style["selected_color"]
        elif (
            piece
            and piece.piece_type == chess.KING
            and piece.color == board.turn
            and chess_logic.is_in_check(board.fen())
        ):
            square_color = square_style["attacked_color"]
        elif last_move and square in (last_move.from_square, last_move.to_square):
            square_color = square_style["prev_moved_color"]

        if square in highlighted:
            square_color = "rgba(0, 255, 0, 0.3)"
            border = "2px solid green"

        return (
            f"background-color: {square_color}; color: {text_color}; "
            f"border-radius: 10px; border: {border};"
        )

    def on_square_clicked(self):
        clicked_button = self.sender()
        clicked_square = next(
            square
            for square, button in self.squares.items()
            if button == clicked_button
        )
        board = self.coordinator.board()

        def is_own_color(square):
            piece = board.piece_at(square)
            return piece is not None and piece.color == board.turn

        if self.selected_square == clicked_square:
            self.selected_square = None
            self.debug(f"{chess.square_name(clicked_square)} Unselected")
        elif is_own_color(clicked_square):
            self.selected_square = clicked_square
            self.debug(f"{chess.square_name(clicked_square)} Selected")
        elif self.selected_square is not None:
            move = chess.Move(self.selected_square, clicked_square)
            self.selected_square = None
            self.attempt_move(move)
        else:
            self.debug("No Piece on Square/ Wrong color")

        self.update_board()

    def attempt_move(self, move):
        side = "White" if self.coordinator.turn == chess.WHITE else "Black"
        self.debug(
            f"Move attempted: {chess.square_name(move.from_square)} -> {chess.square_name(move.to_square)}"
        )

        if chess_logic.needs_promotion(self.coordinator.board(), move):
            promotion_choice = self.get_promotion_choice()
            if not promotion_choice:
                return False
            move = chess.Move(move.from_square, move.to_square, promotion_choice)

        try:
            self.coordinator.apply_human_move(move)
        except MoveRejected as exc:
            print(
                utils.info_text(
                    f"{move} {utils.color_text('Invalid Move', '31')} attempted by {side} ({exc.reason})"
                )
            )
            return False

        print(utils.info_text(f"{move} {utils.color_text('Valid Move', '32')} by {side}"))
        return True

    def get_promotion_choice(self):
        dialog = PromotionDialog(self)
        if dialog.exec():
            return PROMOTION_PIECES[dialog.get_promotion_piece()]

        self.debug("Promotion Dialog Cancelled")
        return None

    def handle_coordinator_update(self, message=None):
        self.update_board(info_text=message)

    def reset_game(self):
        self.selected_square = None
        self.coordinator.reset_game()
        self.update_board()

    def undo_move(self):
        self.selected_square = None
        try:
            self.coordinator.undo_move()
        except NoHistory:
            self.debug("Move Stack Empty")
        self.update_board()

    def flip_board(self):
        self.flipped = not self.flipped
        self.place_squares()
        self.debug(f"Board flipped ({'Black' if self.flipped else 'White'} at the bottom)")

    def change_difficulty(self, index):
        tier = self.difficulty_combo.itemData(index)
        self.coordinator.set_difficulty_tier(tier)

    def set_assistance(self, enabled):
        self.assistance = bool(enabled)
        self.update_board()

    def restart_engine(self):
        self.coordinator.restart_engine()
        self.update_board()

    def set_info_message(self, message: str) -> None:
        self.info_indicator.setText(message)

    def debug(self, message: str) -> None:
        utils.report(self.reporting_level, ReportingLevel.VERBOSE, utils.debug_text(message))


if __name__ == "__main__":
    app = QApplication(sys.argv)
    chess_gui = ChessGUI(SessionCoordinator(), dev=True, reporting_level=ReportingLevel.VERBOSE)
    chess_gui.show()
    sys.exit(app.exec())
