import io
import os
from PIL import Image as PILImage

from catalog_admin.models.variant import StagedFile

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


class ImageRejected(ValueError):
    pass


def validate_image(image_bytes, max_size=MAX_FILE_SIZE):
    """Check an upload is a decodable image under ``max_size`` and return it
    re-encoded as JPEG (which also drops EXIF metadata).

    Raises ``ImageRejected`` for empty, oversized or undecodable input.
    """
    if not image_bytes:
        raise ImageRejected("Empty image file")
    if len(image_bytes) > max_size:
        raise ImageRejected(f"Image too large: {len(image_bytes)} bytes (max {max_size})")

    try:
        PILImage.open(io.BytesIO(image_bytes)).verify()
    except Exception as e:
        raise ImageRejected("Invalid image file") from e

    # verify() leaves the image unusable; decode again for re-encoding
    img = PILImage.open(io.BytesIO(image_bytes))
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=90)
    return out.getvalue()


def stage_upload(upload, max_size=MAX_FILE_SIZE):
    """Turn a werkzeug ``FileStorage`` into a sanitized ``StagedFile``."""
    original = upload.filename or "image"
    try:
        data = validate_image(upload.read(), max_size=max_size)
    except ImageRejected as e:
        raise ImageRejected(f"{original}: {e}") from e
    stem = os.path.splitext(os.path.basename(original))[0] or "image"
    return StagedFile(filename=f"{stem}.jpg", content_type="image/jpeg", data=data)


def stage_uploads(uploads, max_size=MAX_FILE_SIZE):
    """Stage every non-empty upload; returns (staged, error messages)."""
    staged, errors = [], []
    for upload in uploads:
        if not upload or not upload.filename:
            continue
        try:
            staged.append(stage_upload(upload, max_size=max_size))
        except ImageRejected as e:
            errors.append(str(e))
    return staged, errors


def raw_upload(upload):
    """Pass-through part for non-image media (videos)."""
    return (
        upload.filename,
        upload.read(),
        upload.mimetype or "application/octet-stream",
    )
