"""Custom exception hierarchy for the extraction layer.

None of these escape MetadataService; they only steer which fallback is used.
"""

class ServiceError(Exception):
    """Base exception for all service-related errors"""
    def __init__(self, message: str, error_code: str = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class FetchError(ServiceError):
    """Raised when fetching content from URL fails"""
    def __init__(self, message: str = "Failed to fetch content from URL"):
        super().__init__(message, "FETCH_ERROR")


class HTTPFetchError(FetchError):
    """Raised when the server answers with a non-success status"""
    def __init__(self, status_code: int, message: str = None):
        if message is None:
            message = f"HTTP request failed with status code {status_code}"
        super().__init__(message)
        self.status_code = status_code


class URLValidationError(FetchError):
    """Raised when a URL is malformed or points at a private host"""
    def __init__(self, message: str = "Invalid or unsafe URL provided"):
        super().__init__(message)
        self.error_code = "VALIDATION_ERROR"


class UnsupportedContentTypeError(FetchError):
    """Raised when content type is not markup"""
    def __init__(self, content_type: str):
        super().__init__(f"Content type '{content_type}' is not supported")
        self.content_type = content_type


class RenderError(ServiceError):
    """Raised when the headless browser cannot launch or navigate"""
    def __init__(self, message: str = "Failed to render page"):
        super().__init__(message, "RENDER_ERROR")


class RenderTimeoutError(RenderError):
    """Raised when navigation exceeds its timeout"""
    def __init__(self, url: str, timeout_ms: int):
        super().__init__(f"Rendering {url} timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms
