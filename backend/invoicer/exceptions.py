"""
Domain errors raised by the service layer.

Services raise these and never swallow them; main.py maps each class to an
HTTP status. Every error carries the workflow stage it was raised in (when
there is one) and the entity it concerns, so the UI can show an actionable
message.
"""
from typing import Optional


class InvoicerError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    error_code = "invoicer_error"

    def __init__(self, message: str, stage: Optional[str] = None, entity: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.entity = entity

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": self.error_code,
            "stage": self.stage,
            "entity": self.entity,
        }


class ValidationError(InvoicerError):
    """Malformed input: empty required field, bad price/quantity, discount out of range."""

    status_code = 400
    error_code = "validation_error"


class NotFoundError(InvoicerError):
    """Entity does not exist or belongs to another owner."""

    status_code = 404
    error_code = "not_found"


class InsufficientStockError(InvoicerError):
    """Requested quantity exceeds what is on hand."""

    status_code = 409
    error_code = "insufficient_stock"

    def __init__(
        self,
        item_id,
        item_name: str,
        available: int,
        requested: int,
        stage: Optional[str] = None,
    ):
        super().__init__(
            f"Insufficient stock for {item_name}. Available: {available}, Requested: {requested}",
            stage=stage,
            entity=item_name,
        )
        self.item_id = item_id
        self.item_name = item_name
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update({
            "item_id": str(self.item_id),
            "available": self.available,
            "requested": self.requested,
        })
        return out


class PersistenceError(InvoicerError):
    """The underlying store failed. The whole operation may be retried."""

    status_code = 503
    error_code = "persistence_error"


class RenderingError(InvoicerError):
    """PDF generation failed. The invoice itself is already committed."""

    status_code = 500
    error_code = "rendering_error"


class MissingOwnerError(InvoicerError):
    """No owner identity supplied. Fatal precondition, not retryable."""

    status_code = 401
    error_code = "missing_owner"
