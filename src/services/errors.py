# src/services/errors.py

"""Exception types raised by providers, the completion client and the pipeline."""

from pydantic import ValidationError


class ProviderError(Exception):
    """A commerce provider answered with a non-success status.

    Contained inside the adapter: callers only ever see an empty
    result list.
    """

    def __init__(self, provider: str, status_code: int, body: str) -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"{provider} search error {status_code}: {body}"
        )


class CompletionError(Exception):
    """Base class for completion-provider failures."""


class CompletionTransientError(CompletionError):
    """A failure worth retrying (see ``is_retryable``)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CompletionPermanentError(CompletionError):
    """Non-retryable provider error, or no usable JSON in the reply."""


class SchemaValidationError(CompletionError):
    """Parsed JSON did not satisfy the stage's output model."""

    def __init__(self, model_name: str, error: ValidationError) -> None:
        self.model_name = model_name
        self.error = error
        super().__init__(
            f"{model_name} validation failed with "
            f"{error.error_count()} error(s): {error}"
        )


class SessionDataMissingError(LookupError):
    """A pipeline step needed session data the store does not hold."""

    def __init__(self, session_id: str, data_type: str) -> None:
        self.session_id = session_id
        self.data_type = data_type
        super().__init__(
            f"Session {session_id} has no '{data_type}' data"
        )
