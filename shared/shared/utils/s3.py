"""Bucket key and URL conventions shared by the relay and its clients."""
import time


def build_upload_key(folder: str, original_filename: str, now_ms: int | None = None) -> str:
    """``{folder}/{unixMillis}-{originalFilename}``; the timestamp avoids collisions."""
    millis = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{folder.strip('/')}/{millis}-{original_filename}"


def public_file_url(public_base_url: str, key: str) -> str:
    """``{base_public_url}/{filename}``."""
    return f"{public_base_url.rstrip('/')}/{key}"
