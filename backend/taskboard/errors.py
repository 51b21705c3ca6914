# taskboard/errors.py — Error taxonomy for board/column/task operations
# Codes follow TB-{KIND}-{NUMBER}; http_status is a hint for transport layers.
from typing import Any, Dict, Optional

ERROR_CATALOGUE = {
    "TB-NOTFOUND-001": {"message": "Referenced entity does not exist", "http_status": 404},
    "TB-INVALID-001": {"message": "Invalid argument", "http_status": 422},
}


class BoardError(Exception):
    """Base class for errors raised by the task board core"""

    code = "TB-SYS-000"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    @property
    def http_status(self) -> int:
        return ERROR_CATALOGUE.get(self.code, {}).get("http_status", 500)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.message, **self.context}


class NotFound(BoardError):
    """A board, column or task id does not resolve"""

    code = "TB-NOTFOUND-001"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} not found: {entity_id}",
            {"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidArgument(BoardError):
    """Input rejected before any write was issued"""

    code = "TB-INVALID-001"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}", {"field": field})
        self.field = field
