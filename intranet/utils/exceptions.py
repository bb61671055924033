from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception for API errors.
    Carries an explicit status code and a human-readable message."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred. Please try again.",
    ):
        super().__init__(status_code=status_code, detail=detail)


# ============== Authentication ==============


class NotAuthenticatedException(BaseAPIException):
    """Missing, malformed or expired credential, or an unknown user."""

    def __init__(self, detail: str = "Not authorized to access this route."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class InvalidCredentialsException(BaseAPIException):
    """Triggered when login fails. Never says which half was wrong."""

    def __init__(self, detail: str = "Invalid email or password."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class AccountDisabledException(BaseAPIException):
    def __init__(self, detail: str = "Account is deactivated. Contact an administrator."):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class RegistrationClosedException(BaseAPIException):
    def __init__(self, detail: str = "Self-registration is currently disabled."):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


# ============== Users ==============


class UserAlreadyExistsException(BaseAPIException):
    """Prevents duplicate registration by email."""

    def __init__(self, detail: str = "An account with this email already exists."):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


# ============== Permissions ==============


class PermissionDeniedException(BaseAPIException):
    """Role gate or ownership gate rejected the caller."""

    def __init__(
        self, detail: str = "You do not have the required permissions for this action."
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


# ============== Uploads ==============


class UploadRejectedException(BaseAPIException):
    """Wrong MIME type or too many files in one request."""

    def __init__(self, detail: str = "File upload rejected."):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class UploadTooLargeException(BaseAPIException):
    def __init__(self, detail: str = "File exceeds the maximum allowed size."):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=detail,
        )


# ============== General Operational Exceptions ==============


class ResourceNotFoundException(BaseAPIException):
    """Generic fallback for missing resources."""

    def __init__(self, detail: str = "The requested resource could not be found."):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class BadRequestException(BaseAPIException):
    """Rejected state transition or malformed input the schema cannot catch."""

    def __init__(self, detail: str = "Bad request."):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class ConflictException(BaseAPIException):
    """Duplicate value on a unique field."""

    def __init__(self, detail: str = "Duplicate field value entered."):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )
