# app.py
import io
import logging

from flask import Flask, request, send_file, jsonify, abort
from werkzeug.exceptions import HTTPException

from config import Config
from models import invoice_from_dict
from pdf_canvas import RenderError
from pdf_service import generate_invoice_pdf, preview_invoice_pdf

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers
# -----------------------------
def _invoice_from_request():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Expected a JSON object with the invoice data.")
    try:
        return invoice_from_dict(payload)
    except KeyError as e:
        abort(400, description=f"Missing field: {e.args[0]}")
    except (ValueError, TypeError) as e:
        abort(400, description=f"Invalid invoice data: {e}")


# -----------------------------
# App factory
# -----------------------------
def create_app(config_overrides: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(RenderError)
    def render_error(e):
        logger.error("Invoice rendering failed: %s", e)
        return jsonify({"error": str(e)}), 500

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # -----------------------------
    # PDF routes
    # -----------------------------
    @app.route("/invoices/pdf", methods=["POST"])
    def invoice_pdf_download():
        inv = _invoice_from_request()
        saved = {}

        def save(filename, data):
            saved["filename"] = filename
            saved["data"] = data

        generate_invoice_pdf(inv, save, description_strategy=app.config.get("DESCRIPTION_STRATEGY"))
        return send_file(
            io.BytesIO(saved["data"]),
            as_attachment=True,
            download_name=saved["filename"],
            mimetype="application/pdf"
        )

    @app.route("/invoices/preview", methods=["POST"])
    def invoice_pdf_preview():
        inv = _invoice_from_request()
        return jsonify({"preview": preview_invoice_pdf(inv)})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
