"""
Batch face blurring for a directory of images
"""
import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Iterator, List, Optional

from config import get_config
from domain.errors import FaceBlurError
from application.blur_service import FaceBlurService

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".webp"}


def iter_images(folder: Path) -> Iterator[Path]:
    """Image files directly under `folder`, in name order"""
    if not folder.is_dir():
        raise NotADirectoryError(folder)
    for path in sorted(folder.iterdir()):
        if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS:
            yield path


def run_batch(service: FaceBlurService, folder: Path, out=sys.stdout) -> int:
    """Blur every image in `folder`, printing one JSON line each; returns the failure count"""
    failures = 0
    for path in iter_images(folder):
        record = {"file": path.name}
        try:
            result = service.process(path.read_bytes(), uuid.uuid4().hex)
            record.update(result.to_dict())
        except (FaceBlurError, OSError) as e:
            logger.error(f"Failed to process {path}: {e}")
            record["error"] = str(e)
            failures += 1
        out.write(json.dumps(record) + "\n")
    return failures


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    config = get_config()
    parser = argparse.ArgumentParser(description="Blur faces in every image of a directory")
    parser.add_argument("input_dir", type=Path, help="directory containing images")
    parser.add_argument("--output-dir", default=config.OUTPUT_DIR, help="where results are written")
    parser.add_argument(
        "--radius", type=float, default=config.BATCH_BLUR_RADIUS, help="blur radius (Gaussian sigma)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    # Imported here so the InsightFace stack loads only when actually running
    from app import build_service

    service = build_service(blur_radius=args.radius, output_dir=args.output_dir)
    try:
        failures = run_batch(service, args.input_dir)
    finally:
        service.shutdown()

    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
