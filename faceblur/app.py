"""
Face Blur API - InsightFace service
Main application entry point
"""
import logging
import sys

from flask import Flask
from flask_cors import CORS

from config import get_config
from infrastructure.insightface_detector import InsightFaceDetector
from infrastructure.image_loader import ImageLoader
from infrastructure.label_classifier import ClarifaiLabelClassifier
from infrastructure.output_store import LocalOutputStore
from application.blur_service import FaceBlurService
from api.routes import api, init_routes

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


def build_service(blur_radius: float = None, output_dir: str = None) -> FaceBlurService:
    """Wire the pipeline from configuration"""
    config = get_config()

    detector = InsightFaceDetector()
    if config.PRELOAD_MODEL:
        logger.info("Initializing face detector...")
        try:
            detector.warm_up()
        except Exception as e:
            logger.error(f"Failed to initialize detector: {e}")
            raise

    classifier = None
    if config.CLARIFAI_API_KEY:
        classifier = ClarifaiLabelClassifier()

    return FaceBlurService(
        detector=detector,
        image_loader=ImageLoader(),
        output_store=LocalOutputStore(output_dir=output_dir),
        classifier=classifier,
        blur_radius=blur_radius,
    )


def create_app(service: FaceBlurService = None) -> Flask:
    """Application factory"""
    config = get_config()

    # Create Flask app
    app = Flask(__name__)
    app.config['DEBUG'] = config.DEBUG
    app.config['TESTING'] = config.TESTING
    # Leave room for the multipart envelope so the image itself can reach MAX_IMAGE_SIZE
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_IMAGE_SIZE + config.MAX_FORM_OVERHEAD

    # Enable CORS
    CORS(app)

    # Initialize application service
    blur_service = service or build_service()

    # Initialize routes with service
    init_routes(blur_service)

    # Register blueprint
    app.register_blueprint(api)

    logger.info("Application initialized successfully")
    return app


def main():
    """Main entry point"""
    config = get_config()

    logger.info(f"Starting Face Blur API on {config.HOST}:{config.PORT}")
    logger.info(f"Model: {config.MODEL_NAME}")
    logger.info(f"GPU enabled: {config.USE_GPU}")
    logger.info(f"Results directory: {config.OUTPUT_DIR}")

    app = create_app()
    app.run(
        host=config.HOST,
        port=config.PORT,
        debug=config.DEBUG,
        threaded=True,
    )


if __name__ == '__main__':
    main()
