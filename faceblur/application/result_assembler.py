"""
Result assembler
"""
from typing import Sequence

from domain.models import DetectedFace, FaceMetadata, ProcessingResult


class ResultAssembler:
    """Builds the response payload from detections and the stored image location"""

    @staticmethod
    def collect(faces: Sequence[DetectedFace]) -> ProcessingResult:
        """One entry per face, in detection order, whether or not it was blurred"""
        result = ProcessingResult()
        for face in faces:
            result.add(FaceMetadata.from_face(face))
        return result

    @staticmethod
    def finalize(result: ProcessingResult, location: str) -> ProcessingResult:
        if not location:
            raise ValueError("Output location is required to finalize a result")
        if result.is_finalized:
            raise ValueError("Result is already finalized")
        result.output_image_location = location
        return result
