# ENGINE COMMUNICATION
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from PySide6.QtCore import QProcess

import utils
from engine_session import EngineTransportFailure

START_TIMEOUT_MS = 5000
QUIT_TIMEOUT_MS = 3000


def engine_command(path: str, arguments: Sequence[str] = ()) -> Tuple[str, List[str]]:
    """Program and argument list used to launch ``path``; Python scripts run on this interpreter."""
    if path.endswith(".py"):
        return sys.executable, [path, *arguments]
    return path, list(arguments)


def engine_output_processor(proc: QProcess, on_line: Callable[[str], None]) -> None:
    while proc.canReadLine():
        output = bytes(proc.readLine()).decode(errors="replace").strip()
        if output:
            on_line(output)


class QProcessTransport:
    """Line-based engine transport driven by the Qt event loop."""

    def __init__(
        self,
        program: str,
        arguments: Sequence[str] = (),
        *,
        start_timeout_ms: int = START_TIMEOUT_MS,
    ) -> None:
        self.program = program
        self.arguments = list(arguments)
        self.start_timeout_ms = start_timeout_ms
        self._proc: Optional[QProcess] = None
        self._on_line: Optional[Callable[[str], None]] = None
        self._on_failure: Optional[Callable[[str], None]] = None
        self._opening = False

    @property
    def process(self) -> Optional[QProcess]:
        return self._proc

    def open(
        self, on_line: Callable[[str], None], on_failure: Callable[[str], None]
    ) -> None:
        self._on_line = on_line
        self._on_failure = on_failure

        proc = QProcess()
        proc.setProcessChannelMode(QProcess.MergedChannels)
        proc.readyReadStandardOutput.connect(self._read_output)
        proc.errorOccurred.connect(self._handle_error)
        proc.finished.connect(self._handle_finished)
        self._proc = proc

        self._opening = True
        try:
            proc.start(self.program, self.arguments)
            started = proc.waitForStarted(self.start_timeout_ms)
        finally:
            self._opening = False
        if not started:
            self.close()
            raise EngineTransportFailure(
                f"Engine failed to start within timeout: {self.program}"
            )

    def send(self, command: str) -> None:
        proc = self._proc
        if proc is None or proc.state() != QProcess.Running:
            raise EngineTransportFailure("Engine process is not running")
        if proc.write((command + "\n").encode()) == -1:
            raise EngineTransportFailure(f"Failed to write to engine: {proc.errorString()}")

    def close(self) -> None:
        proc = self._proc
        if proc is None:
            return
        self._proc = None
        for signal, slot in (
            (proc.readyReadStandardOutput, self._read_output),
            (proc.errorOccurred, self._handle_error),
            (proc.finished, self._handle_finished),
        ):
            try:
                signal.disconnect(slot)
            except (RuntimeError, TypeError):
                pass

        if proc.state() != QProcess.NotRunning:
            proc.closeWriteChannel()
            if proc.waitForFinished(QUIT_TIMEOUT_MS):
                proc.close()
            else:
                utils.cleanup(proc, quit_app=False)
        else:
            proc.close()
        proc.deleteLater()

    def _read_output(self) -> None:
        if self._proc is None or self._on_line is None:
            return
        engine_output_processor(self._proc, self._on_line)

    def _handle_error(self, error) -> None:
        if self._opening or self._proc is None:
            return
        if error in (QProcess.FailedToStart, QProcess.Crashed, QProcess.WriteError, QProcess.ReadError):
            self._report_failure(self._proc.errorString())

    def _handle_finished(self, exit_code, exit_status) -> None:
        if self._proc is None:
            return
        # Flush anything the engine printed before exiting.
        if self._on_line is not None:
            engine_output_processor(self._proc, self._on_line)
        if self._proc is not None:
            self._report_failure(f"Engine exited with code {exit_code}")

    def _report_failure(self, reason: str) -> None:
        if self._on_failure is not None:
            self._on_failure(reason)
