from decimal import Decimal

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from app.forms import AmountField, GreaterThan


class DummyAmountForm(FlaskForm):
    value = AmountField("Value", validators=[GreaterThan(0)])


def test_plain_numbers_are_parsed(app):
    with app.test_request_context():
        form = DummyAmountForm(formdata=MultiDict({"value": "10.25"}))
        assert form.validate()
        assert form.value.data == Decimal("10.25")


def test_formatted_numbers_are_accepted(app):
    formatted_values = ["1,234.50", "1 234.50", "$1,234.50", "€1 234,50"]
    with app.test_request_context():
        for text in formatted_values:
            form = DummyAmountForm(formdata=MultiDict({"value": text}))
            assert form.validate(), text
            assert form.value.data == Decimal("1234.50")


def test_parenthesised_amount_is_negative(app):
    with app.test_request_context():
        form = DummyAmountForm(formdata=MultiDict({"value": "(12.00)"}))
        assert not form.validate()
        assert form.value.data == Decimal("-12.00")


def test_unparseable_input_only_reports_validator_message(app):
    with app.test_request_context():
        form = DummyAmountForm(formdata=MultiDict({"value": "ten dollars"}))
        assert not form.validate()
        assert form.value.data is None
        assert form.value.errors == ["Number must be greater than 0."]
        # The submitted text is kept for re-rendering.
        assert 'value="ten dollars"' in form.value()


def test_blank_input_is_zero(app):
    with app.test_request_context():
        form = DummyAmountForm(formdata=MultiDict({"value": "  "}))
        assert not form.validate()
        assert form.value.data == Decimal("0")


def test_amount_field_marks_input_as_decimal(app):
    with app.test_request_context():
        html = DummyAmountForm().value()
        assert 'inputmode="decimal"' in html
