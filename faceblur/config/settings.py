"""
Application configuration settings
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Base configuration"""
    # Flask
    DEBUG = _flag("DEBUG", "false")
    TESTING = False
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 4000))

    # InsightFace model settings
    MODEL_NAME = os.getenv("INSIGHTFACE_MODEL", "buffalo_l")  # buffalo_l, buffalo_s, buffalo_sc
    DET_SIZE = int(os.getenv("DET_SIZE", 640))  # Detection size
    PRELOAD_MODEL = _flag("PRELOAD_MODEL", "true")

    # Detection enrichment stages
    WITH_LANDMARKS = _flag("WITH_LANDMARKS", "true")
    WITH_DESCRIPTORS = _flag("WITH_DESCRIPTORS", "true")
    WITH_AGE_GENDER = _flag("WITH_AGE_GENDER", "true")

    # Processing settings
    MAX_FACES = int(os.getenv("MAX_FACES", 50))  # Max faces to detect per image, 0 = no limit
    MIN_CONFIDENCE = float(os.getenv("MIN_CONFIDENCE", 0.5))  # Min detection confidence
    PROCESSING_TIMEOUT = float(os.getenv("PROCESSING_TIMEOUT", 60))  # seconds
    QUEUE_TIMEOUT = float(os.getenv("QUEUE_TIMEOUT", 300))  # seconds waiting for a free worker
    WORKER_THREADS = int(os.getenv("WORKER_THREADS", 4))

    # Blur settings
    BLUR_RADIUS = float(os.getenv("BLUR_RADIUS", 7))
    BATCH_BLUR_RADIUS = float(os.getenv("BATCH_BLUR_RADIUS", 10))

    # Image settings
    MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", 10 * 1024 * 1024))  # 10MB
    MAX_FORM_OVERHEAD = int(os.getenv("MAX_FORM_OVERHEAD", 64 * 1024))  # multipart boundaries and headers

    # Output storage
    OUTPUT_DIR = os.getenv("OUTPUT_DIR", "./uploads")
    OUTPUT_URL_PREFIX = os.getenv("OUTPUT_URL_PREFIX", "/uploads")

    # External classification (Clarifai)
    CLARIFAI_API_KEY = os.getenv("CLARIFAI_API_KEY", "")
    CLARIFAI_USER_ID = os.getenv("CLARIFAI_USER_ID", "clarifai")
    CLARIFAI_APP_ID = os.getenv("CLARIFAI_APP_ID", "main")
    CLARIFAI_MODEL_ID = os.getenv("CLARIFAI_MODEL_ID", "general-image-recognition")
    CLARIFAI_BASE_URL = os.getenv("CLARIFAI_BASE_URL", "https://api.clarifai.com")
    CLASSIFIER_TIMEOUT = float(os.getenv("CLASSIFIER_TIMEOUT", 10))
    CLASSIFIER_REQUIRED = _flag("CLASSIFIER_REQUIRED", "false")

    # GPU settings
    USE_GPU = _flag("USE_GPU", "false")
    GPU_ID = int(os.getenv("GPU_ID", 0))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    PRELOAD_MODEL = False
    CLARIFAI_API_KEY = ""


def get_config():
    """Get configuration based on environment"""
    env = os.getenv("FLASK_ENV", "development")
    if env == "production":
        return ProductionConfig()
    if env == "testing":
        return TestingConfig()
    return DevelopmentConfig()
