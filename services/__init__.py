# services/__init__.py
# Service modules import the database layer, which in turn imports the
# exceptions below; keep this package init free of service imports.
from .exceptions import (
     KasmoniError,
     NotFoundError,
     InvalidAssignmentError,
     ConflictError,
     ValidationFailedError,
     ForbiddenError,
     TransactionFailedError,
     BulkOperationError,
)

__all__ = [
     "KasmoniError",
     "NotFoundError",
     "InvalidAssignmentError",
     "ConflictError",
     "ValidationFailedError",
     "ForbiddenError",
     "TransactionFailedError",
     "BulkOperationError",
]
