"""
main.py

Development entry point for the Ephemera web service.

Environment:
  - REDIS_URL or REDIS_HOST/REDIS_PORT: metadata store
  - STORAGE_DIR or GCS_BUCKET_NAME: blob store
  - RECLAMATION_MODE: thread (default), celery or off
"""

import os

from .app_factory import create_app

app = create_app()


def run() -> None:
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    # The reloader would start a second reclamation thread
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    run()
