"""Custom exceptions for gb-tool."""


class GBToolError(Exception):
    """Base exception for all gb-tool errors."""

    pass


class ConfigError(GBToolError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class MissingApiKeyError(ConfigError):
    """No API key was configured or provided."""

    pass


class ApiRequestError(GBToolError):
    """A request to the remote API failed.

    Attributes:
        signature: Credential-free request signature (URL plus sorted query)
    """

    def __init__(self, message: str, signature: str | None = None) -> None:
        super().__init__(message)
        self.signature = signature


class TransportError(ApiRequestError):
    """Network or HTTP-level failure."""

    pass


class ApiError(ApiRequestError):
    """The remote API reported a failure in its response envelope."""

    def __init__(
        self,
        message: str,
        signature: str | None = None,
        remote_message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, signature)
        self.remote_message = remote_message
        self.status_code = status_code


class EmptyResponseError(ApiRequestError):
    """The remote API returned no body, or a body without the expected payload."""

    pass


class NotFoundError(GBToolError):
    """A show, video, season, or episode lookup came up empty."""

    pass


class ShowNotFoundError(NotFoundError):
    """No show matched the given identifier."""

    pass


class VideoNotFoundError(NotFoundError):
    """No video matched the given query."""

    pass


class SeasonNotFoundError(NotFoundError):
    """No season matched the given reference."""

    pass


class EpisodeNotFoundError(NotFoundError):
    """No episode exists at the given position."""

    pass


class AnchorNotFoundError(NotFoundError):
    """An anchor specifier did not resolve to any episode."""

    pass


class InputError(GBToolError):
    """Caller input is incomplete or self-contradictory."""

    pass


class UnsupportedSpecError(GBToolError):
    """The input is recognized but its behavior is not implemented."""

    pass


class SaveError(GBToolError):
    """A file could not be saved."""

    pass
