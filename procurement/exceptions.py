"""
Error taxonomy for procurement operations.

Validation and consistency errors are raised before anything is written.
PersistenceError means the whole unit of work was rolled back and can be
retried as a unit. ReconciliationRequired means the rollback itself failed and
the stored documents may disagree with each other.
"""
from fastapi import HTTPException, status


class ProcurementError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationFailed(ProcurementError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ProcurementError):
    status_code = status.HTTP_404_NOT_FOUND


class ConsistencyError(ProcurementError):
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(ProcurementError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ReconciliationRequired(ProcurementError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(f"{detail} Manual reconciliation may be required.")
