# core/client.py
import logging

import httpx
from pydantic import ValidationError

from promptline.core.completion_types import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

DEFAULT_COMPLETIONS_URL = "https://api.openai.com/v1/engines/gpt-3.5-turbo-instruct/completions"
NO_COMPLETION_MESSAGE = "no response from ChatGPT"


class CompletionError(Exception):
    """Base class for failures of a single completion call"""


class SerializationError(CompletionError):
    pass


class TransportError(CompletionError):
    pass


class DecodingError(CompletionError):
    pass


class NoCompletionError(CompletionError):
    def __init__(self, message: str = NO_COMPLETION_MESSAGE) -> None:
        super().__init__(message)


class CompletionClient:
    """
    Turns one prompt into one completion by POSTing to the completion endpoint.

    The credential and URL are fixed at construction and never mutated, so a
    single instance can be shared by every session thread. httpx.Client pools
    connections and is safe to use concurrently.
    """

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_COMPLETIONS_URL,
        http_client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=timeout)

    def complete(self, prompt: str) -> str:
        """Return the trimmed text of the first choice, or raise a CompletionError"""
        try:
            body = CompletionRequest(prompt=prompt).model_dump_json().encode("utf-8")
        except ValueError as e:
            raise SerializationError(f"could not encode request: {e}") from e

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            # The stream context closes the response on every exit path
            with self._http.stream("POST", self.url, content=body, headers=headers) as response:
                raw = response.read()
                status = response.status_code
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e

        logger.debug("Completion endpoint answered %s with %d bytes", status, len(raw))

        try:
            parsed = CompletionResponse.model_validate_json(raw)
        except ValidationError as e:
            raise DecodingError(f"invalid completion response: {e.errors()[0]['msg']}") from e

        text = parsed.first_text
        if text is None:
            raise NoCompletionError()
        return text.strip()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
