"""Custom exception hierarchy for edgegap-deploy configuration and operations."""


class EdgegapError(Exception):
    """Base exception for all edgegap-deploy errors.

    All edgegap-deploy exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(EdgegapError):
    """Exception raised for configuration errors.

    Raised when the settings file cannot be loaded, fails validation, or a
    pipeline stage needs a setting (or a file named by a setting) that is
    missing.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class DeploymentError(EdgegapError):
    """Exception raised when a packaging or container operation fails.

    Attributes:
        operation: Pipeline operation that failed (package, build, push, ...)
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize DeploymentError with the failing operation.

        Args:
            operation: Name of the operation that failed
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"Deployment {operation} failed: {message}")


class DockerNotAvailableError(DeploymentError):
    """Exception raised when the Docker daemon cannot be reached."""

    def __init__(self, operation: str = "init") -> None:
        """Create an error with guidance for starting Docker."""
        super().__init__(
            operation=operation,
            message=(
                "Docker is not available. "
                "Ensure Docker is installed and the daemon is running."
            ),
        )


class EdgegapConnectionError(EdgegapError):
    """Error raised when the Edgegap API cannot be reached.

    Attributes:
        url: The API URL that failed
    """

    def __init__(self, url: str, original_error: Exception | None = None) -> None:
        """Initialize EdgegapConnectionError with URL and optional cause.

        Args:
            url: The API URL that failed to connect
            original_error: The underlying transport exception
        """
        self.url = url
        message = f"Failed to connect to Edgegap API at {url}."
        if original_error:
            message += f"\nOriginal error: {original_error}"
        super().__init__(message)


class EdgegapAPIError(EdgegapError):
    """Error raised when the Edgegap API rejects a request.

    Covers non-2xx responses as well as 2xx responses whose body carries a
    ``message`` field, which the API uses to report application-level
    failures.

    Attributes:
        url: Request URL
        status_code: HTTP status code of the response
        detail: ``message`` value from the response body, if any
    """

    def __init__(self, url: str, status_code: int, detail: str | None = None) -> None:
        """Initialize EdgegapAPIError with response details.

        Args:
            url: Request URL
            status_code: HTTP status code
            detail: Error message returned by the API
        """
        self.url = url
        self.status_code = status_code
        self.detail = detail
        message = f"Edgegap API request to {url} failed with status {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class EdgegapResponseError(EdgegapError):
    """Error raised when an Edgegap API response body is not valid JSON."""

    def __init__(self, url: str, body: str) -> None:
        """Create a response error keeping the raw body for the log."""
        self.url = url
        self.body = body
        super().__init__(
            f"Could not deserialize response from {url} into JSON. Response: {body}"
        )
