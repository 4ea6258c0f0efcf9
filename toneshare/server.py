"""HTTP/JSON persistence API for toneshare.

Routes::

  GET  /api/setups    all published setups, newest first
  POST /api/setups    publish one setup record
  POST /api/install   create the backing tables
  GET  /api/catalog   the static pedal / amplifier catalog

Every failure is answered with a JSON body carrying an ``error`` string;
the server never lets a storage problem escape as an HTML error page.
"""

from __future__ import annotations

import logging
import signal
import sys

from flask import Flask, jsonify, request

from toneshare import catalog, records
from toneshare.errors import RecordError, StorageNotReady
from toneshare.store import SetupStore


logger = logging.getLogger(__name__)


def create_app(store: SetupStore) -> Flask:
    """Build the Flask application serving ``store``."""
    app = Flask(__name__)
    app.config["SETUP_STORE"] = store

    @app.post("/api/install")
    def install():
        try:
            store.install()
        except Exception as e:
            logger.exception("[Server] installation failed")
            return jsonify(success=False, error=str(e)), 500
        return jsonify(success=True, message="Tables created")

    @app.get("/api/setups")
    def list_setups():
        try:
            return jsonify(store.list_setups())
        except StorageNotReady as e:
            return jsonify(error=str(e)), 500

    @app.post("/api/setups")
    def save_setup():
        record = request.get_json(silent=True)
        if not isinstance(record, dict):
            return jsonify(error="request body must be a JSON object"), 400
        try:
            store.save_setup(record)
        except RecordError as e:
            return jsonify(error=str(e)), 400
        except StorageNotReady as e:
            return jsonify(error=str(e)), 500
        return jsonify(success=True)

    @app.get("/api/catalog")
    def get_catalog():
        return jsonify(
            pedals=[records.pedal_to_record(p) for p in catalog.PEDALS],
            amplifiers=[records.amplifier_to_record(a) for a in catalog.AMPLIFIERS],
        )

    return app


def run_server(store: SetupStore, host: str, port: int):
    """Convenience entry point used by ``main.py``."""
    app = create_app(store)
    if not store.is_installed():
        logger.warning("[Server] Database at %s is not installed yet; "
                       "POST /api/install or run 'toneshare install'", store.db_path)

    def _shutdown(signum, frame):
        print("\n[Server] Shutting down...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, _shutdown)

    print(f"[Server] Listening on http://{host}:{port}")
    app.run(host=host, port=port, threaded=True, use_reloader=False)
