import logging
import socket

import pytest

import promptline.server.app as app
from promptline.config import ENV_FIELDS
from promptline.server.listener import Listener


@pytest.fixture(autouse=True)
def isolated_startup(monkeypatch):
    """Keep a developer's .env and the test's log handlers out of each other's way"""
    monkeypatch.setattr(app, "load_dotenv", lambda: False)
    for var in ENV_FIELDS:
        monkeypatch.delenv(var, raising=False)
    yield
    logging.getLogger().handlers.clear()


def test_missing_key_exits_before_listening(monkeypatch, capsys):
    bound = []
    monkeypatch.setattr(Listener, "bind", lambda self: bound.append(self))

    assert app.main([]) == 1

    assert "The OPENAI_API_KEY environment variable is not set." in capsys.readouterr().out
    assert bound == []


def test_bind_failure_exits(monkeypatch, capsys):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        assert app.main(["--host", "127.0.0.1", "--port", str(port)]) == 1

    assert "Error listening" in capsys.readouterr().out


def test_interrupt_closes_listener(monkeypatch, capsys):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    listeners = []

    def interrupted(self):
        listeners.append(self)
        raise KeyboardInterrupt

    monkeypatch.setattr(Listener, "serve_forever", interrupted)

    assert app.main(["--host", "127.0.0.1", "--port", "0", "--log-level", "debug"]) == 0

    out = capsys.readouterr().out
    assert "Listening on 127.0.0.1:" in out
    assert "shutting down" in out
    assert listeners[0]._closed.is_set()


def test_parse_args_normalizes_log_level():
    args = app.parse_args(["--port", "9000", "--log-level", "warning"])
    assert args.port == 9000
    assert args.log_level == "WARNING"
    assert args.host is None
