# server/app.py
import argparse
import logging
import sys

from dotenv import load_dotenv

from promptline.config import LOG_LEVELS, ConfigError, Settings
from promptline.core.client import CompletionClient
from promptline.server.listener import Listener

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="promptline",
        description="Bridge newline-delimited TCP prompts to a text-completion API",
    )
    parser.add_argument("--host", help="interface to listen on (default: PROMPTLINE_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="TCP port (default: PROMPTLINE_PORT or 8080)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="diagnostic verbosity (default: PROMPTLINE_LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str = "INFO") -> None:
    # Diagnostics go to stdout
    logging.basicConfig(
        level=level,
        stream=sys.stdout,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI command"""
    args = parse_args(argv)
    load_dotenv()

    try:
        settings = Settings.from_env(host=args.host, port=args.port, log_level=args.log_level)
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        return 1

    configure_logging(settings.log_level)

    with CompletionClient(
        settings.api_key,
        url=settings.completions_url,
        timeout=settings.request_timeout,
    ) as client:
        listener = Listener(client, host=settings.host, port=settings.port)
        try:
            listener.bind()
        except OSError as e:
            logger.error("Error listening: %s", e)
            return 1

        try:
            listener.serve_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            listener.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
