"""
Verification Errors

Raised by the verification store and service, converted to HTTP responses
by the router. All are per-request conditions the caller can recover from.
"""


class VerificationError(Exception):
    """Base exception for verification errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        reason: str | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


class CodeRateLimitedError(VerificationError):
    """Raised when a code is requested inside the cooldown window."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message=(
                f"A code was sent recently. Please wait {retry_after_seconds} "
                "seconds before requesting a new one."
            ),
            error_code="RATE_LIMITED",
            status_code=429,
        )


class CodeNotFoundError(VerificationError):
    """Raised when no code is outstanding for the address."""

    def __init__(self):
        super().__init__(
            message="No verification code found for this email. Please request a new code.",
            error_code="CODE_NOT_FOUND",
            reason="NOT_FOUND",
        )


class CodeExpiredError(VerificationError):
    """Raised when the outstanding code is past its deadline."""

    def __init__(self):
        super().__init__(
            message="This verification code has expired. Please request a new code.",
            error_code="CODE_EXPIRED",
            reason="EXPIRED",
        )


class CodeMismatchError(VerificationError):
    """Raised when the submitted code does not match."""

    def __init__(self):
        super().__init__(
            message="Invalid verification code.",
            error_code="CODE_MISMATCH",
            reason="MISMATCH",
        )
