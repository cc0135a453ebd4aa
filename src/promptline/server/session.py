# server/session.py
import logging
import socket
from enum import Enum
from typing import Protocol

from promptline.core.client import CompletionError

logger = logging.getLogger(__name__)

QUIT_COMMAND = "quit"
ERROR_PREFIX = "Error: "


class Completer(Protocol):
    def complete(self, prompt: str) -> str: ...


class SessionState(Enum):
    OPEN = "open"
    CLOSED = "closed"


def format_reply(text: str) -> bytes:
    """Fold a reply onto a single newline-terminated line"""
    return (" ".join(text.splitlines()) + "\n").encode("utf-8")


class Session:
    """One client's conversation, driven on the connection's own thread"""

    def __init__(self, conn: socket.socket, client: Completer, peer: str | None = None) -> None:
        self.conn = conn
        self.client = client
        self.peer = peer or "client"
        self.state = SessionState.OPEN

    def run(self) -> None:
        if self.state == SessionState.CLOSED:
            return
        try:
            with self.conn.makefile("rb") as reader:
                self._loop(reader)
        finally:
            self.close()

    def _loop(self, reader) -> None:
        while True:
            try:
                raw = reader.readline()
            except OSError as e:
                logger.info("Error reading from connection %s: %s", self.peer, e)
                return

            # A fragment without a terminator only shows up at end of stream
            if not raw.endswith(b"\n"):
                logger.info("Client %s closed the connection", self.peer)
                return

            message = raw.decode("utf-8", errors="replace").strip()

            try:
                reply = self.client.complete(message)
            except CompletionError as e:
                logger.warning("Completion request from %s failed: %s", self.peer, e)
                reply = f"{ERROR_PREFIX}{e}"

            try:
                self.conn.sendall(format_reply(reply))
            except OSError as e:
                logger.info("Error writing to connection %s: %s", self.peer, e)
                return

            if message == QUIT_COMMAND:
                logger.info("Client %s sent quit command", self.peer)
                return

    def close(self) -> None:
        if self.state == SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self.conn.close()
