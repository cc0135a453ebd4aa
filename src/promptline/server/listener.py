# server/listener.py
import logging
import socket
import threading

from promptline.server.session import Completer, Session

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


class Listener:
    """Accepts connections forever and gives each one its own Session thread"""

    def __init__(self, client: Completer, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.client = client
        self.host = host
        self.port = port
        self._sock: socket.socket | None = None
        self._closed = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        if self._sock is None:
            return (self.host, self.port)
        return self._sock.getsockname()[:2]

    def bind(self) -> None:
        """Open the listening socket; raises OSError if the port is unavailable"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen()
        except OSError:
            sock.close()
            raise
        self._sock = sock
        host, port = self.address
        logger.info("Listening on %s:%d", host, port)

    def serve_forever(self) -> None:
        if self._sock is None:
            self.bind()

        # No connection cap and no backoff on accept errors
        while not self._closed.is_set():
            try:
                conn, addr = self._sock.accept()
            except OSError as e:
                if self._closed.is_set():
                    break
                logger.error("Error accepting: %s", e)
                continue

            peer = f"{addr[0]}:{addr[1]}"
            logger.info("Accepted connection from %s", peer)
            session = Session(conn, self.client, peer=peer)
            threading.Thread(target=session.run, name=f"session-{peer}", daemon=True).start()

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        if self._sock is None:
            return
        try:
            # shutdown wakes a thread blocked in accept(); close alone does not on Linux
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
