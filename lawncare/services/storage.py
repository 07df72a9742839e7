"""Upload gallery images to the hosted object storage bucket."""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

import httpx

from ..core.errors import ConfigError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def object_path_for(filename: str, folder: str = "gallery") -> str:
    """Build ``gallery/<epoch-ms>-<sanitised name>`` so uploads never collide."""

    name = _UNSAFE_CHARS.sub("-", (filename or "").strip()).strip("-.") or "image"
    return f"{folder}/{int(time.time() * 1000)}-{name}"


class StorageClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        *,
        timeout: float = 6.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.bucket = bucket
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key and self.bucket)

    @property
    def public_host(self) -> str:
        return self.base_url

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: Optional[str] = None,
        *,
        access_token: Optional[str] = None,
    ) -> str:
        """Store ``content`` at ``path`` and return its public URL."""

        if not self.configured:
            raise ConfigError()
        if not content:
            raise ValidationError("Image file is empty")
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Content-Type": content_type or "application/octet-stream",
            "x-upsert": "false",
        }
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
                response = await client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Storage upload to %s failed: %s", path, exc)
            raise UpstreamError("Image storage unavailable") from exc
        if response.status_code >= 400:
            logger.error("Storage rejected upload to %s (%s): %s", path, response.status_code, response.text)
            raise UpstreamError(f"Error uploading image ({response.status_code})")
        logger.info("storage.uploaded", extra={"extra_data": {"path": path, "bytes": len(content)}})
        return self.public_url(path)
