from enum import StrEnum


class GooglePlacesError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(Exception):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Rate limit exceeded for {service}")


class SelectionValidationError(Exception):
    def __init__(self, message: str, status_code: int | None = 422):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AIErrorKind(StrEnum):
    timeout = "timeout"
    rate_limited = "rate_limited"
    invalid_credentials = "invalid_credentials"
    malformed_response = "malformed_response"
    payload_too_large = "payload_too_large"
    unavailable = "unavailable"


class AIProviderError(Exception):
    def __init__(self, kind: AIErrorKind, message: str, status_code: int | None = None):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(f"{kind}: {message}")


class AnalysisFailure(Exception):
    """Base for pipeline failures that end one restaurant's analysis."""

    user_message = "The restaurant menu could not be analyzed."

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NetworkUnreachableError(AnalysisFailure):
    user_message = "The restaurant website could not be reached."


class BotProtectionError(NetworkUnreachableError):
    user_message = (
        "The restaurant website blocked automated access (bot protection), "
        "so its menu could not be read."
    )


class BinaryContentError(AnalysisFailure):
    user_message = "The menu appears to be available only as a PDF, which could not be analyzed."


class MenuNotFoundError(AnalysisFailure):
    user_message = "The website was reachable but no menu page could be found."


class ExtractionInsufficientError(AnalysisFailure):
    user_message = "A menu page was found but no menu items could be extracted from it."
