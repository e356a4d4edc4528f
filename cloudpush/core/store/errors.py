"""HTTP status codes and the store errors they map to."""
from typing import Dict, Optional, Type

from ..exceptions import (
    AuthError,
    ConflictError,
    QuotaExceededError,
    StoreError,
    TransportError,
)


class HTTPStatusCodes:
    """Status codes returned by drive REST APIs and WebDAV servers."""
    
    STATUS_MESSAGES: Dict[int, str] = {
        400: 'Bad Request: The request is malformed or incorrect.',
        401: 'Unauthorized: Required authentication information is either missing or not valid.',
        403: 'Forbidden: Access is denied to the requested resource.',
        404: 'Not Found: The requested resource does not exist or the upload session expired.',
        405: 'Method Not Allowed: The resource does not accept this method (for WebDAV MKCOL, it already exists).',
        409: 'Conflict: The current state conflicts with what the request expects.',
        413: 'Request Entity Too Large: The request size exceeds the maximum limit.',
        416: 'Requested Range Not Satisfiable: The specified byte range is invalid or unavailable.',
        423: 'Locked: The resource is locked by another client.',
        429: 'Too Many Requests: Client application has been throttled.',
        500: 'Internal Server Error: There was an internal server error while processing the request.',
        502: 'Bad Gateway: The server received an invalid response from upstream.',
        503: 'Service Unavailable: The service is temporarily unavailable.',
        504: 'Gateway Timeout: The server did not respond in time.',
        507: 'Insufficient Storage: The maximum storage quota has been reached.',
    }
    
    ERROR_TYPES: Dict[int, Type[StoreError]] = {
        401: AuthError,
        403: AuthError,
        409: ConflictError,
        416: ConflictError,
        423: ConflictError,
        429: TransportError,
        507: QuotaExceededError,
    }
    
    QUOTA_ERROR_CODES = ('quotaLimitReached', 'insufficientStorage')
    
    @classmethod
    def get_message(cls, status: int) -> str:
        """Gets message for status code."""
        return cls.STATUS_MESSAGES.get(status, f"Unexpected HTTP status: {status}")
    
    @classmethod
    def error_for(
        cls,
        status: int,
        detail: Optional[str] = None,
        error_code: Optional[str] = None
    ) -> StoreError:
        """Build the store error for a failed response."""
        if error_code in cls.QUOTA_ERROR_CODES:
            error_type = QuotaExceededError
        elif status >= 500 and status != 507:
            error_type = TransportError
        else:
            error_type = cls.ERROR_TYPES.get(status, StoreError)
        message = cls.get_message(status)
        if detail:
            message = f"{message} ({detail})"
        return error_type(message, status)
