"""
API routes/handlers
"""
import logging
from flask import Blueprint, current_app, request, jsonify, send_file
from werkzeug.exceptions import RequestEntityTooLarge

from application.blur_service import FaceBlurService
from domain.errors import FaceBlurError

logger = logging.getLogger(__name__)

# Create blueprint
api = Blueprint('api', __name__)

# Service instance (injected)
blur_service: FaceBlurService = None


def init_routes(service: FaceBlurService):
    """Initialize routes with service dependency"""
    global blur_service
    blur_service = service


def _error(message: str, status_code: int):
    return jsonify({
        "success": False,
        "error": message,
    }), status_code


@api.app_errorhandler(RequestEntityTooLarge)
def request_too_large(e):
    """Body larger than MAX_CONTENT_LENGTH, rejected before it reaches a view"""
    limit = current_app.config.get("MAX_CONTENT_LENGTH")
    logger.warning(f"Rejected request body over {limit} bytes")
    return _error(f"Upload too large (max {limit} bytes)", 413)


@api.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    status = blur_service.get_health()
    return jsonify(status.to_dict())


@api.route('/blur-face', methods=['POST'])
def blur_face():
    """Blur every face in an uploaded image and report age/gender estimates"""
    upload = request.files.get('image')
    if upload is None:
        return _error("No image uploaded", 400)

    image_data = upload.read()
    if not image_data:
        return _error("Uploaded image is empty", 400)

    try:
        result = blur_service.blur_faces(image_data)
    except FaceBlurError as e:
        logger.error(f"Processing {upload.filename!r} failed: {e}")
        return _error(str(e), e.status_code)
    except Exception as e:
        logger.exception(f"Unexpected failure processing {upload.filename!r}")
        return _error(f"Processing failed: {e}", 500)

    return jsonify(result.to_dict())


@api.route('/uploads/<path:filename>', methods=['GET'])
def stored_image(filename: str):
    """Serve a stored result image"""
    try:
        path = blur_service.resolve_output(filename)
    except FaceBlurError as e:
        return _error(str(e), e.status_code)

    return send_file(path, mimetype='image/png')


@api.route('/ready', methods=['GET'])
def ready():
    """Readiness check endpoint"""
    is_ready = blur_service.is_ready()
    if is_ready:
        return jsonify({"ready": True})
    return jsonify({"ready": False}), 503
