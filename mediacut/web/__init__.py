"""Flask application factory for the mediacut editing API.

Domain errors raised by the engine map to JSON responses here so routes can
let them propagate.
"""

import logging
import tempfile
from pathlib import Path

from flask import Flask, jsonify

from mediacut.errors import ResponseFormatError, SegmentIndexError

logger = logging.getLogger(__name__)


def create_app(work_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="mediacut_jobs_"))
    # uploads are full-length recordings
    app.config["MAX_CONTENT_LENGTH"] = 20 * 1024 * 1024 * 1024

    from mediacut.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def upload_too_large(error):
        return jsonify({"error": "Recording exceeds the upload limit"}), 413

    @app.errorhandler(ResponseFormatError)
    def unusable_response(error):
        logger.warning("Rejected model response: %s", error)
        return jsonify({"error": str(error)}), 422

    @app.errorhandler(SegmentIndexError)
    def bad_segment_index(error):
        logger.warning("Rejected edit: %s", error)
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(FileNotFoundError)
    def missing_transcript(error):
        return jsonify({"error": str(error)}), 404

    return app
