from enum import IntEnum


class ReportingLevel(IntEnum):
    QUIET = 0
    BASIC = 1
    VERBOSE = 2


def color_text(text, color_code):
    return f"\033[{color_code}m{text}\033[0m"

def debug_text(text):
    return f"{color_text('DEBUG', '31')} {text}"

def info_text(text):
    return f"{color_text('INFO', '34')}  {text}"

def warning_text(text):
    return f"{color_text('WARNING', '33')} {text}"

def sending_text(text):
    return f"{color_text('SENDING  ', '32')} {text}"

def received_text(text):
    return f"{color_text('RECEIVED ', '35')} {text}"


def report(level, minimum, text):
    """Print ``text`` when the active reporting ``level`` is at least ``minimum``."""
    if level >= minimum:
        print(text)


def cleanup(process, app=None, dev=False, quit_app=True):
    # Imported lazily so the core modules stay usable without Qt installed.
    from PySide6.QtCore import QProcess

    if dev:
        print(debug_text("Cleaning up resources..."))

    if process is not None:
        if process.state() != QProcess.NotRunning:
            process.terminate()
            if not process.waitForFinished(2000):
                if dev:
                    print(debug_text("Engine process unresponsive; forcing termination"))
                process.kill()
                process.waitForFinished(1000)
        process.close()

    if quit_app and app is not None:
        app.quit()

def get_piece_unicode(piece):
    piece_unicode = {
        'K': '♔', 'Q': '♕', 'R': '♖', 'B': '♗', 'N': '♘', 'P': '♙',
        'k': '♚', 'q': '♛', 'r': '♜', 'b': '♝', 'n': '♞', 'p': '♟'
    }
    return piece_unicode[piece.symbol()]

def center_on_screen(window):
    from PySide6.QtWidgets import QApplication

    screen = QApplication.primaryScreen()
    if screen is None:
        return
    screen_geometry = screen.geometry()
    window_size = window.size()
    x = (screen_geometry.width() - window_size.width()) // 2 + screen_geometry.left()
    y = (screen_geometry.height() - window_size.height()) // 2 + screen_geometry.top()
    window.move(x, y)
