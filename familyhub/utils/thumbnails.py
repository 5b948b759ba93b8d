import io
import logging

from PIL import Image, UnidentifiedImageError

from familyhub.config import settings

log = logging.getLogger(__name__)


def generate_thumbnail(data: bytes, mime_type: str) -> bytes | None:
    """
    Resample an image to fit inside THUMBNAIL_SIZE and return JPEG bytes.

    Returns None for non-images or when the image cannot be decoded.
    """
    if not mime_type or not mime_type.startswith("image/"):
        return None

    try:
        with Image.open(io.BytesIO(data)) as img:
            img = img.convert("RGB")
            img.thumbnail(settings.THUMBNAIL_SIZE, Image.LANCZOS)

            out = io.BytesIO()
            img.save(out, format="JPEG", quality=80)
            return out.getvalue()

    except (UnidentifiedImageError, OSError) as e:
        log.warning("Thumbnail generation failed: %s", e)
        return None
