# src/authunpack/google/scanner.py

import logging
from pathlib import Path
from typing import List

from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import decode

from authunpack.google.transport import MIGRATION_SCHEME

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".webp"}


def extract_uris_from_path(path_str: str) -> List[str]:
    """
    Scan an image, or every image in a directory, for QR codes and return the
    migration URIs found, in discovery order and without duplicates.
    """
    found_uris: List[str] = []
    path = Path(path_str)

    if not path.exists():
        return found_uris

    files = [path] if path.is_file() else sorted(path.iterdir())

    for f in files:
        if f.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        try:
            with Image.open(f) as img:
                # greyscale gives zbar a cleaner contrast
                decoded = decode(img.convert("L"))
        except (OSError, UnidentifiedImageError) as e:
            logger.warning("Could not read image %s: %s", f, e)
            continue

        for obj in decoded:
            content = obj.data.decode("utf-8", "replace")
            if content.startswith(f"{MIGRATION_SCHEME}://") and content not in found_uris:
                found_uris.append(content)
        logger.debug("%s: %d QR code(s)", f.name, len(decoded))

    return found_uris
