"""TrustMesh exception classes."""


class TrustMeshError(Exception):
    """Base exception for all TrustMesh domain errors."""

    kind = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(TrustMeshError):
    """Raised when input is malformed (empty names, unknown enum values)."""

    kind = "validation_error"


class NotFoundError(TrustMeshError):
    """Raised when a mission or agent reference is unknown."""

    kind = "not_found"


class InvalidStateError(TrustMeshError):
    """Raised when an operation is not valid for the mission's status."""

    kind = "invalid_state"


class TrustError(TrustMeshError):
    """Raised when an agent's trust level is below a mission's minimum."""

    kind = "trust_error"


class AuthorizationError(TrustMeshError):
    """Raised when the calling agent lacks the required role."""

    kind = "authorization_error"


class DuplicateParticipantError(TrustMeshError):
    """Raised when an agent tries to join a mission twice."""

    kind = "duplicate_participant"
