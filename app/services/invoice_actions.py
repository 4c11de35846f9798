"""Validate-then-persist actions behind the invoice forms.

Each action takes the submitted form fields, validates them with
:class:`~app.forms.InvoiceForm` and applies one statement against the
``invoice`` table. Failures come back as an :class:`InvoiceState` that the
caller re-renders; success comes back as a :class:`Redirect` the caller must
follow. The change, its activity entry and the new version of the cached
listing are committed together. Storage failures are logged, validation
failures are not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional, Union

from flask import current_app
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict

from app import LISTING_PATH, db
from app.forms import InvoiceForm
from app.models import Invoice
from app.utils.activity import log_activity
from app.utils.page_cache import revalidate_path, stage_revalidation

FIELDS = ("customer_id", "amount", "status")

CREATE_MISSING_FIELDS = "Missing Fields. Failed to Create Invoice."
CREATE_DATABASE_ERROR = "Database Error: Failed to Create Invoice."
UPDATE_MISSING_FIELDS = "Missing Fields. Failed to Update Invoice."
UPDATE_DATABASE_ERROR = "Database Error: Failed to Update Invoice."
DELETE_DATABASE_ERROR = "Database Error: Failed to Delete Invoice."

# The sqlite3 driver raises a bare OverflowError for out-of-range integers.
STORAGE_ERRORS = (SQLAlchemyError, ArithmeticError)


class InvoiceNotFound(SQLAlchemyError):
    """Raised when an update matches no stored invoice."""


def _empty_errors() -> Dict[str, List[str]]:
    return {name: [] for name in FIELDS}


@dataclass
class InvoiceState:
    """Outcome of a failed invoice action, used to re-render the form."""

    message: Optional[str] = None
    errors: Dict[str, List[str]] = field(default_factory=_empty_errors)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "errors": {name: list(self.errors.get(name, [])) for name in FIELDS},
        }


@dataclass(frozen=True)
class Redirect:
    """Successful action; the caller navigates to ``location``."""

    location: str


@dataclass(frozen=True)
class InvoiceSubmission:
    customer_id: str
    amount: Decimal
    status: str

    @property
    def amount_cents(self) -> int:
        cents = (self.amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return int(cents)


@dataclass
class ValidationResult:
    data: Optional[InvoiceSubmission] = None
    errors: Dict[str, List[str]] = field(default_factory=_empty_errors)

    @property
    def ok(self) -> bool:
        return self.data is not None


ActionResult = Union[InvoiceState, Redirect]


def _as_formdata(fields):
    if fields is None:
        return MultiDict()
    if hasattr(fields, "getlist"):
        return fields
    return MultiDict(
        {k: ("" if v is None else str(v)) for k, v in dict(fields).items()}
    )


def today() -> date:
    """Current calendar date on the server clock, in UTC."""
    return datetime.now(timezone.utc).date()


def validate_invoice(fields: Mapping[str, str]) -> ValidationResult:
    """Decode submitted invoice fields or collect per-field errors."""
    form = InvoiceForm(formdata=_as_formdata(fields), meta={"csrf": False})
    if not form.validate():
        errors = _empty_errors()
        for name in FIELDS:
            errors[name] = list(getattr(form, name).errors)
        return ValidationResult(errors=errors)
    return ValidationResult(
        data=InvoiceSubmission(
            customer_id=form.customer_id.data,
            amount=form.amount.data,
            status=form.status.data,
        )
    )


def _commit_mutation(activity: str) -> None:
    """Record ``activity``, stage the listing revalidation and commit."""
    log_activity(activity)
    stage_revalidation(LISTING_PATH)
    db.session.commit()


def create_invoice(fields: Mapping[str, str]) -> ActionResult:
    """Validate ``fields`` and insert a new invoice dated today."""
    result = validate_invoice(fields)
    if not result.ok:
        return InvoiceState(CREATE_MISSING_FIELDS, result.errors)

    submission = result.data
    try:
        invoice = Invoice(
            customer_id=submission.customer_id,
            amount=submission.amount_cents,
            status=submission.status,
            date=today(),
        )
        db.session.add(invoice)
        db.session.flush()
        _commit_mutation(f"Created invoice {invoice.id}")
    except STORAGE_ERRORS:
        db.session.rollback()
        current_app.logger.exception("Database Error: failed to create invoice")
        return InvoiceState(CREATE_DATABASE_ERROR)

    revalidate_path(LISTING_PATH)
    return Redirect(LISTING_PATH)


def update_invoice(invoice_id: str, fields: Mapping[str, str]) -> ActionResult:
    """Overwrite customer, amount and status of ``invoice_id``.

    The invoice date is left untouched. An id that matches no row is
    reported as a database error.
    """
    result = validate_invoice(fields)
    if not result.ok:
        return InvoiceState(UPDATE_MISSING_FIELDS, result.errors)

    submission = result.data
    try:
        stmt = (
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(
                customer_id=submission.customer_id,
                amount=submission.amount_cents,
                status=submission.status,
            )
        )
        updated = db.session.execute(stmt)
        if updated.rowcount == 0:
            raise InvoiceNotFound(f"Invoice {invoice_id} does not exist")
        _commit_mutation(f"Edited invoice {invoice_id}")
    except STORAGE_ERRORS:
        db.session.rollback()
        current_app.logger.exception(
            "Database Error: failed to update invoice %s", invoice_id
        )
        return InvoiceState(UPDATE_DATABASE_ERROR)

    revalidate_path(LISTING_PATH)
    return Redirect(LISTING_PATH)


def delete_invoice(invoice_id: str) -> Optional[InvoiceState]:
    """Remove ``invoice_id``. Returns an :class:`InvoiceState` on failure."""
    try:
        db.session.execute(delete(Invoice).where(Invoice.id == invoice_id))
        _commit_mutation(f"Deleted invoice {invoice_id}")
    except STORAGE_ERRORS:
        db.session.rollback()
        current_app.logger.exception(
            "Database Error: failed to delete invoice %s", invoice_id
        )
        return InvoiceState(DELETE_DATABASE_ERROR)

    revalidate_path(LISTING_PATH)
    return None
