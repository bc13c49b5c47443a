"""Publishing of a product upload to the content repository.

Each upload becomes at most two commits, made strictly in this order:

    images/{product_id}.jpg      (only when an image was sent)
    products/{product_id}.json   (always)

The image commit is not rolled back if the product-record commit fails.
"""
from __future__ import annotations

import base64
import io
import json
import logging
from typing import Any, Protocol

from PIL import Image, UnidentifiedImageError

from app.config import Settings
from app.models import ProductUpload

logger = logging.getLogger(__name__)


class ImageDecodeError(ValueError):
    """Raised when an image cannot be decoded for re-encoding."""


class ContentStore(Protocol):
    async def upsert_file(self, path: str, content_base64: str, message: str) -> dict[str, Any]:
        ...


def image_path(product_id: str) -> str:
    return f"images/{product_id}.jpg"


def record_path(product_id: str) -> str:
    return f"products/{product_id}.json"


def encode_product_record(product_data: Any) -> str:
    """Pretty-print ``product_data`` as JSON and base64 encode the UTF-8 text."""

    text = json.dumps(product_data, indent=2, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_product_record(content_base64: str) -> Any:
    return json.loads(base64.b64decode(content_base64).decode("utf-8"))


def normalize_image(image_base64: str, *, max_dim: int, quality: int) -> str:
    """Re-encode an image as an RGB JPEG no larger than ``max_dim`` on either side."""

    raw = base64.b64decode("".join(image_base64.split()))
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img = img.convert("RGB")  # ensure RGB for JPEG
            if max(img.size) > max_dim:
                img.thumbnail((max_dim, max_dim))
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=quality, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError("imageBase64 is not a decodable image") from exc
    return base64.b64encode(buffer.getvalue()).decode("ascii")


async def publish_product(store: ContentStore, upload: ProductUpload, settings: Settings) -> dict[str, Any]:
    """Commit the image (if any) and then the product record; return the record write result."""

    product_id = upload.product_id

    if upload.image_base64:
        content = upload.image_base64
        if settings.image_compress:
            content = normalize_image(content, max_dim=settings.image_max_dim, quality=settings.image_quality)
        await store.upsert_file(image_path(product_id), content, f"Add/update image for {product_id}")
        logger.info("Committed %s", image_path(product_id))

    result = await store.upsert_file(
        record_path(product_id),
        encode_product_record(upload.product_data),
        f"Add/update product data for {product_id}",
    )
    logger.info("Committed %s", record_path(product_id))
    return result
