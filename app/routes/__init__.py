"""Flask blueprint package for the invoice dashboard routes.

Blueprints are defined in :mod:`app.routes.invoice_routes` and registered in
:mod:`app.__init__`: ``invoice`` serves the HTML pages under
``/dashboard/invoices`` and ``api`` serves the JSON endpoints under ``/api``.
"""
