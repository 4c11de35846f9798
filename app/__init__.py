import logging
import os
import secrets
from datetime import date, datetime

from dotenv import load_dotenv
from flask import Flask, Response, g, jsonify, render_template, request
from flask_bootstrap import Bootstrap
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect
from flask_wtf.csrf import CSRFError

load_dotenv()
db = SQLAlchemy()
csrf = CSRFProtect()

LISTING_PATH = "/dashboard/invoices"


def _get_bool_env(var_name: str, default: bool = False) -> bool:
    """Return a boolean environment variable value."""

    value = os.getenv(var_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


DEFAULT_CSP_TEMPLATE = (
    "default-src 'self'; "
    "img-src 'self' data: https:; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net "
    "https://cdnjs.cloudflare.com; "
    "script-src 'self' https://cdn.jsdelivr.net https://cdnjs.cloudflare.com "
    "'nonce-{nonce}'; "
    "font-src 'self' data:; "
    "frame-ancestors 'self'; "
    "form-action 'self'; "
    "object-src 'none'; "
    "base-uri 'self'"
)


def _database_uri(base_dir: str) -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    # DATABASE_PATH may point at a directory, e.g. a mounted volume.
    default_db_path = os.path.join(base_dir, "invoices.db")
    db_path = os.getenv("DATABASE_PATH", default_db_path)
    if os.path.isdir(db_path):
        db_path = os.path.join(db_path, "invoices.db")
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    return f"sqlite:///{os.path.abspath(db_path)}"


def create_app(args: list):
    """Application factory used by Flask."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY")
    default_secure_cookies = "--demo" not in args
    session_cookie_secure = _get_bool_env(
        "SESSION_COOKIE_SECURE", default=default_secure_cookies
    )
    app.config.update(
        ENFORCE_HTTPS=_get_bool_env("ENFORCE_HTTPS", default=False),
        SESSION_COOKIE_SECURE=session_cookie_secure,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PAGE_CACHE_ENABLED=_get_bool_env("PAGE_CACHE_ENABLED", default=True),
        PAGE_CACHE_MAX_ENTRIES=int(os.getenv("PAGE_CACHE_MAX_ENTRIES", "128")),
        DEMO="--demo" in args,
    )
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri(os.getcwd())

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    app.logger.setLevel(getattr(logging, log_level, logging.INFO))

    db.init_app(app)
    Bootstrap(app)
    csrf.init_app(app)

    from app.utils.page_cache import PageCache

    PageCache(app)

    def format_date(value, fmt="%b %d, %Y"):
        if value is None:
            return ""
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            return str(value)
        return value.strftime(fmt)

    def format_currency(cents):
        if cents is None:
            return ""
        return f"${cents / 100:,.2f}"

    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["format_currency"] = format_currency

    @app.before_request
    def set_csp_nonce():
        """Generate a nonce for inline scripts allowed by the CSP."""

        g.csp_nonce = secrets.token_urlsafe(16)

    @app.before_request
    def block_http_options():
        """Return a 405 for HTTP OPTIONS requests to reduce information leakage."""
        if request.method == "OPTIONS":
            return Response(status=405)

    @app.after_request
    def apply_security_headers(response):
        """Attach standard security headers to every response."""
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if request.is_secure or app.config.get("ENFORCE_HTTPS", False):
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        nonce = getattr(g, "csp_nonce", "") or secrets.token_urlsafe(16)
        csp_template = app.config.get(
            "CONTENT_SECURITY_POLICY", DEFAULT_CSP_TEMPLATE
        )
        response.headers.setdefault(
            "Content-Security-Policy", csp_template.replace("{nonce}", nonce)
        )
        return response

    @app.context_processor
    def inject_csp_nonce():
        """Expose the CSP nonce to templates for inline scripts."""

        return {"csp_nonce": getattr(g, "csp_nonce", "")}

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        """Render a helpful page when CSRF validation fails."""
        if request.blueprint == "api":
            return jsonify({"message": error.description}), 400
        return (
            render_template("errors/csrf_error.html", reason=error.description),
            400,
        )

    with app.app_context():
        # Tables are created on start; there are no migrations to run.
        from . import models  # noqa: F401

        db.create_all()

        from app.routes.invoice_routes import api, invoice

        app.register_blueprint(invoice)
        app.register_blueprint(api, url_prefix="/api")

    return app
