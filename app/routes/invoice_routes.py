from flask import (
    Blueprint,
    abort,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from sqlalchemy import String, cast, or_

from app import LISTING_PATH, db
from app.forms import DeleteForm, InvoiceForm
from app.models import Customer, Invoice
from app.services import invoice_actions
from app.services.invoice_actions import InvoiceState, Redirect
from app.utils.page_cache import current_version, get_page_cache
from app.utils.pagination import build_pagination_args, get_listing_params

invoice = Blueprint("invoice", __name__)
api = Blueprint("api", __name__)


def _search_invoices(search):
    query = Invoice.query.join(Customer)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Customer.name.ilike(pattern),
                Customer.email.ilike(pattern),
                Invoice.status.ilike(pattern),
                cast(Invoice.date, String).ilike(pattern),
                cast(Invoice.amount, String).ilike(pattern),
            )
        )
    return query.order_by(Invoice.date.desc(), Invoice.id)


@invoice.route("/")
def index():
    return redirect(url_for("invoice.view_invoices"))


@invoice.route("/dashboard/invoices")
def view_invoices():
    """List invoices with optional search."""
    params = get_listing_params()
    cache = get_page_cache()
    # Read the version before the rows so a concurrent change only costs a miss.
    version = current_version(LISTING_PATH)
    table = cache.get(LISTING_PATH, params, version)
    if table is None:
        invoices = _search_invoices(params.search).paginate(
            page=params.page, per_page=params.per_page, error_out=False
        )
        # Cached across sessions, so the partial carries no CSRF token.
        table = render_template(
            "invoices/_table.html",
            invoices=invoices,
            search=params.search,
            pagination_args=build_pagination_args(params),
        )
        cache.set(LISTING_PATH, params, version, table)
    return render_template(
        "invoices/view_invoices.html",
        title="Invoices",
        table=table,
        search=params.search,
        delete_form=DeleteForm(),
    )


@invoice.route("/dashboard/invoices/create", methods=["GET", "POST"])
def create_invoice():
    """Create an invoice for a customer."""
    form = InvoiceForm()
    state = InvoiceState()
    status_code = 200
    if request.method == "POST":
        result = invoice_actions.create_invoice(request.form)
        if isinstance(result, Redirect):
            flash("Invoice created successfully!", "success")
            return redirect(result.location)
        state, status_code = result, 400
    return (
        render_template(
            "invoices/invoice_form.html",
            form=form,
            state=state,
            title="Create Invoice",
            action=url_for("invoice.create_invoice"),
        ),
        status_code,
    )


@invoice.route("/dashboard/invoices/<invoice_id>/edit", methods=["GET", "POST"])
def edit_invoice(invoice_id):
    """Edit an existing invoice."""
    record = db.session.get(Invoice, invoice_id)
    if record is None:
        abort(404)
    form = InvoiceForm(
        data={
            "customer_id": record.customer_id,
            "amount": record.amount_units,
            "status": record.status,
        }
    )
    state = InvoiceState()
    status_code = 200
    if request.method == "POST":
        result = invoice_actions.update_invoice(invoice_id, request.form)
        if isinstance(result, Redirect):
            flash("Invoice updated successfully!", "success")
            return redirect(result.location)
        state, status_code = result, 400
    return (
        render_template(
            "invoices/invoice_form.html",
            form=form,
            state=state,
            title="Edit Invoice",
            action=url_for("invoice.edit_invoice", invoice_id=invoice_id),
        ),
        status_code,
    )


@invoice.route("/dashboard/invoices/<invoice_id>/delete", methods=["POST"])
def delete_invoice(invoice_id):
    """Delete an invoice."""
    form = DeleteForm()
    if not form.validate_on_submit():
        abort(400)
    state = invoice_actions.delete_invoice(invoice_id)
    if state is None:
        flash("Invoice deleted successfully!", "success")
    else:
        flash(state.message, "danger")
    return redirect(url_for("invoice.view_invoices"))


def _payload():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form


def _respond(result, success_status=200):
    if isinstance(result, Redirect):
        return jsonify({"redirect": result.location}), success_status
    has_field_errors = any(result.errors.values())
    return jsonify(result.to_dict()), 400 if has_field_errors else 500


@api.route("/invoices", methods=["POST"])
def create_invoice_api():
    """Create an invoice from a JSON or form body."""
    return _respond(invoice_actions.create_invoice(_payload()), 201)


@api.route("/invoices/<invoice_id>", methods=["PUT"])
def update_invoice_api(invoice_id):
    """Update an invoice from a JSON or form body."""
    return _respond(invoice_actions.update_invoice(invoice_id, _payload()))


@api.route("/invoices/<invoice_id>", methods=["DELETE"])
def delete_invoice_api(invoice_id):
    state = invoice_actions.delete_invoice(invoice_id)
    if state is None:
        return jsonify({"deleted": invoice_id})
    return jsonify(state.to_dict()), 500
