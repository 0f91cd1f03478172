"""API error classes.

Services and dependencies raise these; main.api_error_handler renders
each one as the {"error": {...}} envelope with its status code and any
extra headers.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
        headers: Optional extra response headers (e.g., an auth challenge).
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.headers = headers
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for request body validation errors, query param errors, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (400).

    Duplicate handles, duplicate SKUs and pending verifications are all
    reported as bad requests. Accepts a custom code so callers can tell
    the conflict types apart.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details,
        )


class VerificationPendingError(ConflictError):
    """A verification token is already outstanding for this handle (400)."""

    def __init__(self) -> None:
        super().__init__(
            code="VERIFICATION_PENDING",
            message="A verification email has already been sent for this account",
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Always carries a Basic challenge so clients know how to authenticate.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="catalog"'},
        )


class ForbiddenError(APIError):
    """Not allowed to access resource (403).

    Use when auth is valid but user lacks permission, and for routes that
    do not exist (so route existence is not leaked to authenticated users).
    """

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class NotOwnerError(ForbiddenError):
    """Authenticated principal does not own the resource (403)."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"You do not own this {resource.lower()}")


class UnverifiedError(APIError):
    """Authenticated principal has not verified their email yet (403)."""

    def __init__(self) -> None:
        super().__init__(
            code="EMAIL_NOT_VERIFIED",
            message="Please verify your email before using this endpoint",
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class UnsupportedMediaError(APIError):
    """Request body has an unsupported content type (415)."""

    def __init__(self, message: str = "Unsupported media type") -> None:
        super().__init__(
            code="UNSUPPORTED_MEDIA_TYPE",
            message=message,
            status_code=415,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


class ServiceUnavailableError(APIError):
    """A load-bearing backend (e.g., the credential store) is down (503)."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503,
        )
