"""Image utilities."""
import io
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from lostfound.exceptions import UnsupportedFormatError

register_heif_opener()

DEFAULT_FORMATS = ["jpeg", "jpg", "png", "webp", "heic"]

# Config extension names -> Pillow format names
_FORMAT_ALIASES = {"jpg": "JPEG", "jpeg": "JPEG", "heic": "HEIF", "heif": "HEIF"}


def pillow_formats(allowed_formats: list[str]) -> set[str]:
    """Map configured extensions (jpg, heic, ...) to Pillow format names."""
    return {_FORMAT_ALIASES.get(fmt.lower(), fmt.upper()) for fmt in allowed_formats}


def detect_format(content: bytes, allowed_formats: list[str] | None = None) -> str:
    """Return the Pillow format name of the image, rejecting unsupported ones."""
    try:
        img = Image.open(io.BytesIO(content))
    except UnidentifiedImageError:
        raise UnsupportedFormatError("unknown")

    fmt = img.format or "unknown"
    if fmt not in pillow_formats(allowed_formats or DEFAULT_FORMATS):
        raise UnsupportedFormatError(fmt.lower())
    return fmt


def preprocess_image(
    content: bytes, max_dim: int = 1920, allowed_formats: list[str] | None = None
) -> bytes:
    """Normalize image: convert to RGB, resize if needed."""
    detect_format(content, allowed_formats)
    img = Image.open(io.BytesIO(content))

    if img.mode != "RGB":
        img = img.convert("RGB")

    if max(img.size) > max_dim:
        ratio = max_dim / max(img.size)
        img = img.resize((int(img.width * ratio), int(img.height * ratio)))

    out = io.BytesIO()
    img.save(out, format="JPEG", quality=95)
    return out.getvalue()
