"""
Clarifai image classification client
"""
import base64
import logging

import requests

from domain.errors import ExternalServiceError
from domain.interfaces import LabelClassifierInterface
from config import get_config

logger = logging.getLogger(__name__)

# Clarifai API status code for a successful call
_STATUS_SUCCESS = 10000


class ClarifaiLabelClassifier(LabelClassifierInterface):
    """Labels an image with the top concept of a Clarifai model"""

    def __init__(self, api_key: str = None, session: requests.Session = None):
        self.config = get_config()
        self.api_key = api_key or self.config.CLARIFAI_API_KEY
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'FaceBlurAPI/1.0',
            'Authorization': f'Key {self.api_key}',
        })
        self.url = (
            f"{self.config.CLARIFAI_BASE_URL.rstrip('/')}/v2/users/{self.config.CLARIFAI_USER_ID}"
            f"/apps/{self.config.CLARIFAI_APP_ID}/models/{self.config.CLARIFAI_MODEL_ID}/outputs"
        )

    def classify(self, data: bytes) -> str:
        """Return the highest-scoring concept name for the image"""
        payload = {
            "inputs": [
                {"data": {"image": {"base64": base64.b64encode(data).decode("ascii")}}}
            ]
        }

        try:
            response = self.session.post(
                self.url,
                json=payload,
                timeout=self.config.CLASSIFIER_TIMEOUT,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Classification request failed: {e}")
            raise ExternalServiceError(f"Classification request failed: {e}") from e

        status = body.get("status", {})
        if status.get("code") != _STATUS_SUCCESS:
            raise ExternalServiceError(
                f"Classification failed: {status.get('description', 'unknown error')}"
            )

        try:
            concepts = body["outputs"][0]["data"]["concepts"]
            label = max(concepts, key=lambda c: c.get("value", 0.0))["name"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ExternalServiceError("Classification response has no concepts") from e

        logger.info(f"Image classified as '{label}'")
        return label
