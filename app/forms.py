from decimal import Decimal, InvalidOperation

from flask import g
from flask_wtf import FlaskForm
from wtforms import (
    DecimalField as WTFormsDecimalField,
    RadioField,
    SelectField,
    SubmitField,
)
from wtforms.validators import (
    AnyOf,
    DataRequired,
    NumberRange,
    StopValidation,
    ValidationError,
)

from app import db
from app.models import INVOICE_STATUSES, Customer

CUSTOMER_REQUIRED = "Please select a customer."
AMOUNT_REQUIRED = "Please enter an amount greater than $0."
STATUS_REQUIRED = "Please select an invoice status."

# Largest amount whose cents fit a signed 64-bit integer column.
MAX_AMOUNT = Decimal(2**63 - 1) / 100


class AmountField(WTFormsDecimalField):
    """Decimal field that accepts formatted monetary input.

    Unparseable input leaves ``data`` as ``None`` without recording a
    processing error so that the field validators decide which message the
    user sees. Blank input is treated as zero.
    """

    _CURRENCY_SYMBOLS = "$€£¥₽₩₹₺"

    def __init__(self, *args, render_kw=None, **kwargs):
        render_kw = dict(render_kw or {})
        render_kw.setdefault("inputmode", "decimal")
        render_kw.setdefault("step", "0.01")
        super().__init__(*args, render_kw=render_kw, **kwargs)

    @classmethod
    def _normalise_plain_number(cls, text):
        """Return a plain numeric string for formatted monetary input.

        Users frequently enter values such as ``"1,234.50"`` or
        ``"$1 234,50"``. ``Decimal`` cannot parse those directly because of
        the thousands separators, currency symbols, or locale specific
        decimal separators.
        """

        if not text:
            return None

        cleaned = text.strip()
        if not cleaned:
            return None

        negative = False
        if cleaned.startswith("(") and cleaned.endswith(")"):
            negative = True
            cleaned = cleaned[1:-1].strip()

        while cleaned and cleaned[0] in cls._CURRENCY_SYMBOLS:
            cleaned = cleaned[1:].lstrip()
        while cleaned and cleaned[-1] in cls._CURRENCY_SYMBOLS:
            cleaned = cleaned[:-1].rstrip()

        if not cleaned:
            return None

        cleaned = cleaned.replace("\u00a0", " ")

        decimal_is_comma = False
        if "," in cleaned and "." in cleaned:
            decimal_is_comma = cleaned.rfind(".") < cleaned.rfind(",")
        elif "," in cleaned:
            fractional_length = len(cleaned) - cleaned.rfind(",") - 1
            decimal_is_comma = 0 < fractional_length <= 2

        cleaned = cleaned.replace("_", "").replace(" ", "")

        if decimal_is_comma:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")

        if not cleaned:
            return None

        if negative:
            cleaned = f"-{cleaned}"

        return cleaned

    def process_formdata(self, valuelist):
        self.data = None
        if not valuelist or valuelist[0] is None:
            return

        text = str(valuelist[0]).strip()
        if not text:
            self.data = Decimal("0")
            return

        normalised = self._normalise_plain_number(text)
        if normalised is None:
            return
        try:
            value = Decimal(normalised)
        except (InvalidOperation, ValueError):
            return
        if value.is_finite():
            self.data = value


class GreaterThan:
    """Validate that a numeric field is strictly greater than ``minimum``."""

    def __init__(self, minimum, message=None):
        self.minimum = minimum
        self.message = message

    def __call__(self, form, field):
        if field.data is None or field.data <= self.minimum:
            message = self.message or field.gettext(
                "Number must be greater than %(min)s."
            ) % {"min": self.minimum}
            raise StopValidation(message)


def existing_customer(form, field):
    if db.session.get(Customer, field.data) is None:
        raise ValidationError(CUSTOMER_REQUIRED)


def load_customer_choices():
    """Return customer choices ordered by name, cached per request."""
    if "customer_choices" not in g:
        g.customer_choices = [
            (c.id, c.name) for c in Customer.query.order_by(Customer.name).all()
        ]
    return g.customer_choices


class InvoiceForm(FlaskForm):
    customer_id = SelectField(
        "Choose customer",
        validate_choice=False,
        validators=[DataRequired(message=CUSTOMER_REQUIRED), existing_customer],
    )
    amount = AmountField(
        "Choose an amount",
        places=2,
        validators=[
            GreaterThan(0, message=AMOUNT_REQUIRED),
            NumberRange(max=MAX_AMOUNT, message=AMOUNT_REQUIRED),
        ],
    )
    status = RadioField(
        "Set the invoice status",
        choices=[(s, s.capitalize()) for s in INVOICE_STATUSES],
        validate_choice=False,
        validators=[AnyOf(INVOICE_STATUSES, message=STATUS_REQUIRED)],
    )
    submit = SubmitField("Save Invoice")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.customer_id.choices = [("", "Select a customer")] + load_customer_choices()


class DeleteForm(FlaskForm):
    """Simple form used for CSRF protection on delete actions."""

    submit = SubmitField("Delete")
