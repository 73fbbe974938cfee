from __future__ import annotations


class SearchError(Exception):
    """Base class for failures surfaced to API callers.

    ``status_code`` is the HTTP status the boundary should answer with;
    ``message`` is safe to show to the caller.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SearchError):
    status_code = 400


class CredentialError(SearchError):
    """The caller should be prompted for an API key."""

    status_code = 401


class MissingCredential(CredentialError):
    def __init__(self, message: str = "") -> None:
        super().__init__(
            message
            or "No API key provided. Please provide an API key via the request "
            "or set GOOGLE_API_KEY in the environment"
        )


class CredentialRejected(CredentialError):
    pass


class SessionNotFound(SearchError):
    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__("Chat session not found")
        self.session_id = session_id


class ProviderFailure(SearchError):
    pass


class ProviderTimeout(ProviderFailure):
    pass
