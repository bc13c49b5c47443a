#!/usr/bin/env python
"""Publish a product JSON file (and optional image) straight to the GitHub repository."""
from __future__ import annotations

import argparse
import asyncio
import base64
import json
import sys
from pathlib import Path

from app.config import get_settings
from app.models import PayloadError, ProductUpload
from app.services.github import GitHubAPIError, GitHubContentsClient
from app.services.publisher import publish_product


def build_upload(product_id: str, data_file: Path, image_file: Path | None) -> ProductUpload:
    payload = {
        "productId": product_id,
        "productData": json.loads(data_file.read_text(encoding="utf-8")),
    }
    if image_file is not None:
        payload["imageBase64"] = base64.b64encode(image_file.read_bytes()).decode("ascii")
    return ProductUpload.from_payload(payload)


async def _publish(upload: ProductUpload) -> dict:
    settings = get_settings()
    async with GitHubContentsClient.from_settings(settings) as client:
        return await publish_product(client, upload, settings)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Publish a product listing to the GitHub content repository")
    parser.add_argument("--product_id", required=True)
    parser.add_argument("--data", type=Path, required=True, help="Path to the product JSON file")
    parser.add_argument("--image", type=Path, default=None, help="Optional JPEG image file")
    args = parser.parse_args(argv)

    settings = get_settings()
    if not settings.is_github_configured():
        print("Set GITHUB_TOKEN and GITHUB_REPO first.", file=sys.stderr)
        return 2
    try:
        settings.repo_coordinates()
    except ValueError as exc:
        print(f"{exc}: expected owner/repo, got {settings.github_repo!r}", file=sys.stderr)
        return 2

    try:
        upload = build_upload(args.product_id, args.data, args.image)
    except PayloadError as exc:
        print(f"Invalid upload: {exc}", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(_publish(upload))
    except GitHubAPIError as exc:
        print(f"GitHub rejected the upload: {exc}", file=sys.stderr)
        return 1

    print("Published product:")
    print(json.dumps(result.get("content", result), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
