"""
Image helpers: ids, filenames, share links and display formatting.
"""

import base64
import random
import re
import string
import time
from datetime import date
from typing import Optional
from urllib.parse import parse_qs, quote, unquote_to_bytes, urlencode, urlparse

from pixelprompt.catalog import DEFAULT_SIZE
from pixelprompt.models import GeneratedImage

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_image_id() -> str:
    """Unique id of the form ``img_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"img_{int(time.time() * 1000)}_{suffix}"


def generate_filename(
    prompt: str,
    style: Optional[str] = None,
    size: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """Build a download filename from the prompt and metadata.

    Same inputs on the same day give the same name.
    """
    clean = prompt.lower()
    clean = re.sub(r"[^a-z0-9\s]", "", clean)
    clean = re.sub(r"\s+", "-", clean)[:50]
    if clean.endswith("-"):
        clean = clean[:-1]

    stamp = (today or date.today()).isoformat()

    metadata = []
    if style:
        metadata.append(re.sub(r"\s+", "-", style.lower()))
    if size:
        metadata.append(size.replace("×", "x"))
    metadata_str = f"_{'_'.join(metadata)}" if metadata else ""

    return f"ai-image_{clean}_{stamp}{metadata_str}.png"


def numbered_filename(filename: str, number: int) -> str:
    """Insert ``_<number>`` before the .png extension."""
    return filename.replace(".png", f"_{number}.png")


def format_generation_time(milliseconds: int) -> str:
    if milliseconds < 1000:
        return f"{milliseconds}ms"
    if milliseconds < 60000:
        return f"{milliseconds / 1000:.1f}s"
    minutes = milliseconds // 60000
    seconds = (milliseconds % 60000) // 1000
    return f"{minutes}m {seconds}s"


def is_valid_image_url(url: str) -> bool:
    """Cheap syntactic check: http(s) URL with a host, or a data:image URI."""
    if not url:
        return False
    if url.startswith("data:image/"):
        return True
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def decode_data_url(url: str) -> bytes:
    """Bytes carried by a ``data:`` URI. Raises ValueError if it is malformed."""
    header, sep, payload = url.partition(",")
    if not url.startswith("data:") or not sep:
        raise ValueError("Malformed data URL")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return unquote_to_bytes(payload)


def create_share_url(image: GeneratedImage, origin: str) -> str:
    """Link that reopens the generator pre-filled with an image's settings."""
    params = urlencode({
        "prompt": image.prompt,
        "style": image.style or "",
        "size": image.size,
        "imageId": image.id,
    })
    return f"{origin.rstrip('/')}/?share={quote(params, safe='')}"


def parse_share_url(url: str) -> Optional[dict]:
    """Recover prompt/style/size/id from a share link, or None if it has none."""
    query = parse_qs(urlparse(url).query)
    share = query.get("share")
    if not share:
        return None

    params = parse_qs(share[0])

    def first(key: str) -> str:
        return params.get(key, [""])[0]

    return {
        "prompt": first("prompt"),
        "style": first("style") or None,
        "size": first("size") or DEFAULT_SIZE,
        "id": first("imageId") or generate_image_id(),
    }
