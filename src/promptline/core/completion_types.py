# core/completion_types.py
from pydantic import BaseModel

MAX_TOKENS = 150
TEMPERATURE = 0.7

class CompletionRequest(BaseModel):
    prompt: str
    max_tokens: int = MAX_TOKENS
    temperature: float = TEMPERATURE

class Choice(BaseModel):
    text: str = ""

class CompletionResponse(BaseModel):
    # A missing or null list means the service produced nothing
    choices: list[Choice] | None = None

    @property
    def first_text(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].text
