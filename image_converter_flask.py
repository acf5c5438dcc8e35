# image_converter_flask.py
import io
import logging
from datetime import datetime, timezone

from flask import (
    Flask, request, render_template_string, send_file, redirect, url_for, flash, jsonify
)
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from image_converter import (
    ConversionError, ConversionRequest, ConversionService, MissingUploadError, Settings,
    SizeError, TargetFormat, __version__,
)

logger = logging.getLogger(__name__)

# Room for multipart boundaries and form fields on top of the image itself
MULTIPART_ALLOWANCE = 1024 * 1024

# Template using Bootstrap CDN for a decent UI
INDEX_HTML = """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Image Converter</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.2/dist/css/bootstrap.min.css" rel="stylesheet"/>
  </head>
  <body class="bg-light">
    <div class="container py-5">
      <div class="card shadow-sm">
        <div class="card-body">
          <h3 class="card-title mb-3">Image Converter</h3>
          <p class="text-muted">Select an image, choose the output format and download the converted file.</p>

          {% with messages = get_flashed_messages() %}
            {% if messages %}
              <div class="mb-3">
                {% for m in messages %}
                  <div class="alert alert-warning">{{ m }}</div>
                {% endfor %}
              </div>
            {% endif %}
          {% endwith %}

          <form method="POST" action="{{ url_for('convert') }}" enctype="multipart/form-data">
            <div class="mb-3">
              <label class="form-label">Choose an image</label>
              <input class="form-control" type="file" name="image" accept="image/*" required>
              <div class="form-text">Supported: jpg, png, gif, webp, avif, ico, bmp, tiff (max {{ max_mb }} MB, {{ max_dim }}x{{ max_dim }} px)</div>
            </div>

            <div class="mb-3">
              <label class="form-label">Choose output format</label>
              <select class="form-select" name="format" required>
                {% for fmt in formats %}
                  <option value="{{ fmt }}">{{ fmt | upper }}</option>
                {% endfor %}
              </select>
              <div class="form-text">ICO: use a square image with a transparent background for best results.</div>
            </div>

            <button type="submit" class="btn btn-primary">Convert &amp; Download</button>
            <a href="{{ url_for('index') }}" class="btn btn-link">Reset</a>
          </form>
        </div>
      </div>
    </div>
  </body>
</html>
"""


def _read_request():
    """Build a ConversionRequest from the multipart form. Raises ConversionError."""
    token = request.form.get("format")
    target = TargetFormat.parse(token)
    storage = request.files.get("image")
    if storage is None or not storage.filename:
        raise MissingUploadError("No image uploaded")
    return ConversionRequest(
        source_bytes=storage.read(),
        target_format=target,
        declared_mime=storage.mimetype,
        requested_token=token.strip().lower(),
    )


def _attachment(result, request_id: str):
    response = send_file(
        io.BytesIO(result.output_bytes),
        as_attachment=True,
        download_name=result.filename,
        mimetype=result.mime_type,
    )
    response.headers["X-Conversion-Time"] = f"{result.elapsed_ms}ms"
    response.headers["X-Image-Format"] = result.format_token
    response.headers["Cache-Control"] = "public, max-age=3600"
    response.headers["X-Request-Id"] = request_id
    return response


def create_app(settings: Settings = None) -> Flask:
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.secret_key = settings.secret_key  # for flash messages
    app.config["MAX_CONTENT_LENGTH"] = settings.max_bytes + MULTIPART_ALLOWANCE
    service = ConversionService(settings)
    app.extensions["image_converter"] = service
    formats = [fmt.value for fmt in TargetFormat]

    @app.route("/", methods=["GET"])
    def index():
        return render_template_string(
            INDEX_HTML,
            formats=formats,
            max_mb=settings.max_bytes // (1024 * 1024),
            max_dim=settings.max_dimension,
        )

    @app.route("/convert", methods=["POST"])
    def convert():
        try:
            conversion = _read_request()
            result = service.convert(conversion)
        except ConversionError as e:
            flash(f"{e.message}. {e.suggestion}")
            return redirect(url_for("index"))
        return _attachment(result, conversion.request_id)

    @app.route("/api/convert", methods=["POST"])
    def api_convert():
        conversion = _read_request()
        result = service.convert(conversion)
        return _attachment(result, conversion.request_id)

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify(
            success=True,
            message="Server online",
            timestamp=datetime.now(timezone.utc).isoformat(),
            supportedFormats=formats,
            version=__version__,
        )

    @app.errorhandler(ConversionError)
    def conversion_failed(e):
        logger.error(f"Conversion error on {request.path}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        max_mb = settings.max_bytes // (1024 * 1024)
        error = SizeError(f"File too large. Maximum: {max_mb}MB")
        if request.path == url_for("convert"):
            flash(f"{error.message}. {error.suggestion}")
            return redirect(url_for("index"))
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"Unexpected error on {request.path}")
        if request.path == url_for("convert"):
            flash(f"Internal server error. {ConversionError.default_suggestion}")
            return redirect(url_for("index"))
        return jsonify(
            success=False,
            error="Internal server error",
            suggestion=ConversionError.default_suggestion,
        ), 500

    logger.info(f"Supported formats: {', '.join(formats)}")
    return app


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)

if __name__ == "__main__":
    app.run(debug=_settings.debug, host="0.0.0.0", port=_settings.port)
