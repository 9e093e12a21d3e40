"""
Shared error handling for the media catalog cache layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class CatalogCacheException(Exception):
    """Base exception for the catalog cache layer."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class CacheMissError(CatalogCacheException):
    """Raised when a cache-only read finds no valid entry."""

    status_code = 404

    def __init__(self, key: str, message: str = "Cache miss and fetch skipped"):
        super().__init__("CACHE_MISS", message, {"key": key})
        self.key = key


class AssetLoadError(CatalogCacheException):
    """Asset (image) load failures."""

    status_code = 502

    def __init__(self, url: str, reason: str = "load failed", details: Optional[Dict[str, Any]] = None):
        merged = {"url": url, "reason": reason}
        merged.update(details or {})
        super().__init__("ASSET_LOAD_ERROR", f"Failed to load asset: {url}", merged)
        self.url = url
        self.reason = reason


class ValidationError(CatalogCacheException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UnknownCacheError(CatalogCacheException):
    """A named cache store does not exist."""

    status_code = 404

    def __init__(self, name: str):
        super().__init__("UNKNOWN_CACHE", f"Unknown cache: {name}", {"cache": name})
        self.name = name
