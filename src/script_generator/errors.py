"""Exceptions raised by the generation pipeline.

Anything derived from ScriptGeneratorError aborts a run; nothing is retried.
"""

from typing import Optional


class ScriptGeneratorError(Exception):
    pass


class ConfigurationError(ScriptGeneratorError):
    pass


class FetchError(ScriptGeneratorError):
    """A primary content fetch returned a non-success status. The message is the response body."""

    def __init__(self, url: str, status_code: Optional[int], body: str):
        super().__init__(body)
        self.url = url
        self.status_code = status_code
        self.body = body


class MissingAcceptedAnswerError(ScriptGeneratorError):
    def __init__(self, index: int, link: str):
        super().__init__(f"Question {index} has no accepted answer: {link}")
        self.index = index
        self.link = link


class SchemaValidationError(ScriptGeneratorError):
    """The model response did not match the requested JSON schema."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw
