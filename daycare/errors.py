from __future__ import annotations

from typing import Any, Dict, List


class DaycareError(Exception):
    """Base error. Carries the HTTP status and a machine-readable kind."""

    status_code: int = 500
    kind: str = "DaycareError"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(DaycareError):
    status_code = 400
    kind = "ValidationError"
    default_message = "Invalid request"


class InvalidAmount(ValidationError):
    kind = "InvalidAmount"
    default_message = "Invalid amount"


class NotFoundError(DaycareError):
    status_code = 404
    kind = "NotFoundError"
    default_message = "Not found"


class OwnerNotFound(NotFoundError):
    kind = "OwnerNotFound"
    default_message = "Owner not found"


class GuardianNotFound(NotFoundError):
    kind = "GuardianNotFound"
    default_message = "Guardian not found"


class ChildNotFound(NotFoundError):
    kind = "ChildNotFound"
    default_message = "Child not found"


class FeeStructureNotFound(NotFoundError):
    kind = "FeeStructureNotFound"
    default_message = "Fee structure not found"


class ConflictError(DaycareError):
    status_code = 409
    kind = "ConflictError"
    default_message = "Already exists"


class ReferentialError(DaycareError):
    status_code = 404
    kind = "ReferentialError"
    default_message = "Referenced records do not exist"


class InvalidChildIds(ReferentialError):
    kind = "InvalidChildIds"
    default_message = "Invalid child IDs"

    def __init__(self, invalid_child_ids: List[str], message: str | None = None):
        self.invalid_child_ids = list(invalid_child_ids)
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return super().to_dict() | {"invalidChildIds": self.invalid_child_ids}
