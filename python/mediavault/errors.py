"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_ASSET_NOT_FOUND = "E_ASSET_NOT_FOUND"
    E_MEDIA_METADATA_UNAVAILABLE = "E_MEDIA_METADATA_UNAVAILABLE"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_FILE_REQUIRED = "E_FILE_REQUIRED"
    E_FILE_TOO_LARGE = "E_FILE_TOO_LARGE"
    E_INVALID_FILE_TYPE = "E_INVALID_FILE_TYPE"
    E_TITLE_REQUIRED = "E_TITLE_REQUIRED"

    # Server errors
    E_AUTH_UNAVAILABLE = "E_AUTH_UNAVAILABLE"  # 503
    E_INTERNAL = "E_INTERNAL"  # 500
    E_UPLOAD_FAILED = "E_UPLOAD_FAILED"  # 500
    E_MISSING_PROFILE_DATA = "E_MISSING_PROFILE_DATA"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_ASSET_NOT_FOUND: 404,
    ApiErrorCode.E_MEDIA_METADATA_UNAVAILABLE: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_FILE_REQUIRED: 400,
    ApiErrorCode.E_FILE_TOO_LARGE: 400,
    ApiErrorCode.E_INVALID_FILE_TYPE: 400,
    ApiErrorCode.E_TITLE_REQUIRED: 400,
    ApiErrorCode.E_AUTH_UNAVAILABLE: 503,
    ApiErrorCode.E_INTERNAL: 500,
    ApiErrorCode.E_UPLOAD_FAILED: 500,
    ApiErrorCode.E_MISSING_PROFILE_DATA: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class UploadFailedError(ApiError):
    """The media provider rejected or failed an upload."""

    def __init__(self, detail: str):
        super().__init__(ApiErrorCode.E_UPLOAD_FAILED, f"Upload failed: {detail}")
        self.detail = detail


class MissingProfileDataError(ApiError):
    """Identity provider did not supply the email or name needed to create a user."""

    def __init__(self, message: str = "Missing required user data from authentication provider"):
        super().__init__(ApiErrorCode.E_MISSING_PROFILE_DATA, message)
