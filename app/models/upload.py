from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PayloadError(ValueError):
    """Raised when an inbound upload payload fails validation."""


def _is_absent(value: Any) -> bool:
    # null, "", 0 and false are absent; {} and [] are values
    return value is None or value == "" or (not isinstance(value, str) and value == 0)


def _is_base64(value: str) -> bool:
    try:
        base64.b64decode("".join(value.split()), validate=True)
    except binascii.Error:
        return False
    return True


class RepoCoordinates(BaseModel):
    owner: str
    repo: str
    branch: str = "main"


class ProductUpload(BaseModel):
    """A validated upload request.

    Wire names are camelCase (``productId``, ``imageBase64``,
    ``productData``); ``product_data`` may be any JSON value.
    """

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId", min_length=1)
    image_base64: str | None = Field(None, alias="imageBase64")
    product_data: Any = Field(..., alias="productData")

    @classmethod
    def from_payload(cls, payload: Any) -> "ProductUpload":
        """Validate a parsed JSON body, raising PayloadError with the client-facing message."""

        if not isinstance(payload, dict):
            payload = {}

        product_id = payload.get("productId")
        product_data = payload.get("productData")
        image_base64 = payload.get("imageBase64")

        if _is_absent(product_id) or _is_absent(product_data):
            raise PayloadError("Missing productId or productData")

        if _is_absent(image_base64):
            image_base64 = None
        elif not isinstance(image_base64, str):
            raise PayloadError("imageBase64 must be base64 string")
        elif image_base64.startswith("data:"):
            raise PayloadError("imageBase64 must be base64 without data: prefix")
        elif not _is_base64(image_base64):
            raise PayloadError("imageBase64 is not valid base64")

        # bool is an int subclass; true/false are not identifiers
        if isinstance(product_id, bool) or not isinstance(product_id, (str, int)):
            raise PayloadError("Invalid productId")
        product_id = str(product_id)
        if "/" in product_id or "\\" in product_id or product_id in (".", ".."):
            raise PayloadError("Invalid productId")

        return cls(productId=product_id, imageBase64=image_base64, productData=product_data)


class UploadResponse(BaseModel):
    success: bool = True
    result: dict[str, Any]
