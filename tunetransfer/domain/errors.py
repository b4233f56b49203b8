"""Error taxonomy for sync passes.

Every failure a caller can observe is one of four kinds. Each error renders
as a structured payload (kind + message) so the outward interface never has
to expose raw exceptions.
"""

from typing import Any, ClassVar


class SyncError(Exception):
    """Base class for all structured tunetransfer failures."""

    kind: ClassVar[str] = "sync_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        """Render the error as a serializable ``{"kind", "message"}`` mapping."""
        return {"kind": self.kind, "message": self.message}


class AuthenticationRequired(SyncError):
    """No session, an expired session, or a session lacking required scopes."""

    kind: ClassVar[str] = "authentication_required"


class UpstreamAPIError(SyncError):
    """The provider's read API failed or returned inconsistent data."""

    kind: ClassVar[str] = "upstream_api_error"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.status is not None:
            payload["status"] = self.status
        return payload


class PersistenceError(SyncError):
    """The store rejected a read or write."""

    kind: ClassVar[str] = "persistence_error"


class ConfigurationError(SyncError):
    """Required settings are absent or invalid at startup."""

    kind: ClassVar[str] = "configuration_error"


INTERNAL_ERROR_PAYLOAD: dict[str, Any] = {
    "kind": "internal",
    "message": "Internal server error",
}
