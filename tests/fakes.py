from typing import Callable, List, Optional

from engine_session import EngineTransportFailure


class FakeTransport:
    """In-memory engine transport; tests push engine output with :meth:`reply`."""

    def __init__(self, *, fail_open: bool = False) -> None:
        self.commands: List[str] = []
        self.fail_open = fail_open
        self.fail_send = False
        self.opened = False
        self.closed = False
        self.on_line: Optional[Callable[[str], None]] = None
        self.on_failure: Optional[Callable[[str], None]] = None

    def open(self, on_line, on_failure) -> None:
        if self.fail_open:
            raise EngineTransportFailure("Engine failed to start within timeout: fake")
        self.opened = True
        self.on_line = on_line
        self.on_failure = on_failure

    def send(self, command: str) -> None:
        if self.fail_send:
            raise EngineTransportFailure("broken pipe")
        self.commands.append(command)

    def close(self) -> None:
        self.closed = True

    def reply(self, *lines: str) -> None:
        for line in lines:
            self.on_line(line)

    def handshake(self) -> None:
        self.reply("id name FakeFish", "uciok", "readyok")

    def crash(self, reason: str = "Engine exited with code 1") -> None:
        self.on_failure(reason)
