"""
Local filesystem store for result images
"""
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path
from typing import Callable, Optional

import cv2
from PIL import Image

from domain.errors import EncodingError, FaceBlurError, ImageNotFoundError, ProcessingTimeout
from domain.interfaces import OutputStoreInterface
from domain.models import PixelBuffer
from config import get_config

logger = logging.getLogger(__name__)

_LABEL_CHARS = re.compile(r"[^a-z0-9]+")


def make_output_name(request_id: Optional[str] = None, label: Optional[str] = None) -> str:
    """Build a result file name unique to one request"""
    request_id = request_id or uuid.uuid4().hex
    slug = _LABEL_CHARS.sub("-", (label or "").lower()).strip("-")[:40]
    if slug:
        return f"result_{slug}_{request_id}.png"
    return f"result_{request_id}.png"


class LocalOutputStore(OutputStoreInterface):
    """Writes PNG results under OUTPUT_DIR, each file exactly once"""

    def __init__(self, output_dir: str = None, url_prefix: str = None):
        self.config = get_config()
        self.output_dir = Path(output_dir or self.config.OUTPUT_DIR)
        self.url_prefix = (url_prefix or self.config.OUTPUT_URL_PREFIX).rstrip("/")
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save(
        self,
        canvas: PixelBuffer,
        name: str,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> str:
        """
        Encode the canvas as PNG and commit it under `name`.

        The bytes go to a temporary file in the same directory which is
        flushed, synced and closed before being linked to its final name, so
        a returned location always refers to a complete file. The temporary
        file is removed on every path; an existing result is never replaced.
        """
        final_path = self.output_dir / name
        fd, tmp_path = tempfile.mkstemp(dir=self.output_dir, prefix=".partial-", suffix=".png")

        try:
            with os.fdopen(fd, "wb") as sink:
                if canvas.has_alpha:
                    image = Image.fromarray(cv2.cvtColor(canvas.pixels, cv2.COLOR_BGRA2RGBA))
                else:
                    image = Image.fromarray(cv2.cvtColor(canvas.pixels, cv2.COLOR_BGR2RGB))
                image.save(sink, format="PNG")
                sink.flush()
                os.fsync(sink.fileno())

            if cancelled is not None and cancelled():
                raise ProcessingTimeout("Request cancelled before the result was stored")

            os.link(tmp_path, final_path)

        except FileExistsError as e:
            raise EncodingError(f"Result already exists: {name}") from e
        except FaceBlurError:
            raise
        except Exception as e:
            logger.error(f"Failed to write result {name}: {e}")
            raise EncodingError(f"Failed to write result image: {e}") from e
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

        logger.info(f"Stored result {final_path}")
        return f"{self.url_prefix}/{name}"

    def resolve(self, filename: str) -> str:
        """Return the path of a stored result, or raise ImageNotFoundError"""
        root = self.output_dir.resolve()
        path = (root / filename).resolve()

        if path.parent != root or path.name.startswith(".") or not path.is_file():
            raise ImageNotFoundError(f"Image not found: {filename}")

        return str(path)
