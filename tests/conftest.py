import socket
import threading

import pytest

from promptline.core.client import CompletionError
from promptline.server.session import Session


class StubCompleter:
    """Records prompts and answers from a callable"""

    def __init__(self, answer=lambda prompt: f"echo: {prompt}"):
        self.answer = answer
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer(prompt)


def failing(message: str = "boom"):
    def answer(prompt: str) -> str:
        raise CompletionError(message)

    return answer


class CountingConn:
    """Socket wrapper that counts close() calls"""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.close_calls = 0

    def makefile(self, *args, **kwargs):
        return self.sock.makefile(*args, **kwargs)

    def sendall(self, data: bytes) -> None:
        self.sock.sendall(data)

    def close(self) -> None:
        self.close_calls += 1
        self.sock.close()


class RunningSession:
    def __init__(self, completer):
        server, self.client = socket.socketpair()
        self.client.settimeout(5)
        self.conn = CountingConn(server)
        self.session = Session(self.conn, completer, peer="test-peer")
        self.reader = self.client.makefile("rb")
        self.thread = threading.Thread(target=self.session.run, daemon=True)
        self.thread.start()

    def send(self, data: bytes) -> None:
        self.client.sendall(data)

    def readline(self) -> bytes:
        return self.reader.readline()

    def finish(self) -> None:
        self.thread.join(timeout=5)
        assert not self.thread.is_alive()

    def shutdown(self) -> None:
        self.reader.close()
        self.client.close()


@pytest.fixture
def running_session():
    started = []

    def start(completer) -> RunningSession:
        running = RunningSession(completer)
        started.append(running)
        return running

    yield start
    for running in started:
        running.shutdown()
