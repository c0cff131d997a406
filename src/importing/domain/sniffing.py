PNG_MAGIC = b"\x89PNG"
JPEG_MAGIC = b"\xff\xd8\xff"
GIF_MAGIC = b"GIF8"
RIFF_MAGIC = b"RIFF"
WEBP_MAGIC = b"WEBP"


def sniff_image_type(data: bytes) -> str | None:
    """Return the image media type implied by the leading bytes, or None."""
    if len(data) < 4:
        return None
    if data.startswith(PNG_MAGIC):
        return "image/png"
    if data.startswith(JPEG_MAGIC):
        return "image/jpeg"
    if data.startswith(GIF_MAGIC):
        return "image/gif"
    if len(data) >= 12 and data.startswith(RIFF_MAGIC) and data[8:12] == WEBP_MAGIC:
        return "image/webp"
    return None


def media_type_from_extension(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    return "image/jpeg" if ext == "jpg" else f"image/{ext}"
