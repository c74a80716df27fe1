"""
Domain errors
"""


class FaceBlurError(Exception):
    """Base error for the face blur pipeline"""
    status_code = 500


class DecodeError(FaceBlurError):
    """Image bytes are unreadable or decode to a zero-size image"""
    status_code = 400


class DetectionError(FaceBlurError):
    """Detector unavailable or the buffer is incompatible with it"""


class RegionError(FaceBlurError):
    """Extracting or blurring a single face region failed"""


class EncodingError(FaceBlurError):
    """Serializing or writing the output image failed"""


class ExternalServiceError(FaceBlurError):
    """An external call (e.g. image classification) failed"""


class ProcessingTimeout(FaceBlurError):
    """The pipeline did not finish within the configured bound"""


class ImageNotFoundError(FaceBlurError):
    """A stored result image does not exist"""
    status_code = 404
