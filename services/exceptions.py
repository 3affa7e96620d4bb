# services/exceptions.py
"""
Typed exceptions for the kasmoni services.

Every error carries a machine-readable ``code`` and the HTTP ``status_code``
the API layer answers with, so routers never parse messages:

    KasmoniError (base)
    +-- NotFoundError            404  NOT_FOUND
    +-- InvalidAssignmentError   400  INVALID_ASSIGNMENT
    +-- ConflictError            409  CONFLICT
    +-- ValidationFailedError    422  VALIDATION_FAILED
    +-- ForbiddenError           403  FORBIDDEN
    +-- TransactionFailedError   503  TRANSACTION_FAILED (retryable)
    +-- BulkOperationError       400  BULK_OPERATION_FAILED

main.py registers a single handler for KasmoniError.
"""
from typing import Any, Optional


class KasmoniError(Exception):
     """Base exception for all service errors."""

     code: str = "KASMONI_ERROR"
     status_code: int = 500
     retryable: bool = False

     def __init__(self, message: str):
          self.message = message
          super().__init__(message)

     def to_dict(self) -> dict[str, Any]:
          return {"success": False, "error": self.message, "code": self.code}


class NotFoundError(KasmoniError):
     """A referenced group, member, payment or request does not exist."""

     code = "NOT_FOUND"
     status_code = 404

     def __init__(self, entity: str, entity_id: Any = None, message: Optional[str] = None):
          self.entity = entity
          self.entity_id = entity_id
          super().__init__(message or f"{entity} not found")


class InvalidAssignmentError(KasmoniError):
     """Slot not owned by the member, month already taken, or group full."""

     code = "INVALID_ASSIGNMENT"
     status_code = 400


class ConflictError(KasmoniError):
     """The operation collides with existing state."""

     code = "CONFLICT"
     status_code = 409


class ValidationFailedError(KasmoniError):
     """Malformed input that got past schema validation."""

     code = "VALIDATION_FAILED"
     status_code = 422


class ForbiddenError(KasmoniError):
     """The principal lacks the role, or does not own the resource."""

     code = "FORBIDDEN"
     status_code = 403


class TransactionFailedError(KasmoniError):
     """The store could not commit; the transaction was rolled back."""

     code = "TRANSACTION_FAILED"
     status_code = 503
     retryable = True

     def __init__(self, reason: str):
          self.reason = reason
          super().__init__(f"Transaction failed and was rolled back: {reason}")


class BulkOperationError(KasmoniError):
     """
     A batch was rejected as a whole.

     ``failures`` lists every failing item as a dict with at least
     ``index`` and ``error``.
     """

     code = "BULK_OPERATION_FAILED"
     status_code = 400

     def __init__(self, message: str, failures: list[dict[str, Any]]):
          self.failures = failures
          super().__init__(message)

     def to_dict(self) -> dict[str, Any]:
          body = super().to_dict()
          body["failures"] = self.failures
          return body
