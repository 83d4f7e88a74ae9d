"""
File storage for uploads.

Question-paper images and community notes go to a MediaStore: the hosted media
service in production, a local directory in development and tests. Each stored
file is referenced by its URL plus a public_id used as the deletion token.
Topic attachments always live on local disk under the uploads directory.
"""

from __future__ import annotations

import hashlib
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import httpx
from fastapi import UploadFile

from portal.config import settings
from portal.utils.common import safe_filename
from portal.utils.logger import get_logger

logger = get_logger(__name__)

_HOSTED_URL = re.compile(r"(?:/(?P<resource_type>image|video|raw))?/upload/(?:v\d+/)?(?P<path>.+)$")
_EXTENSION = re.compile(r"\.[^./]+$")


class MediaStoreError(Exception):
    """The media backend refused or failed an operation."""


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str
    resource_type: str = "image"


class MediaStore(ABC):
    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> StoredMedia:
        ...

    @abstractmethod
    async def destroy(self, public_id: str, resource_type: str = "image") -> None:
        ...


def public_id_from_url(url: str) -> Optional[str]:
    """
    Recover the deletion token from a hosted URL: .../image/upload/v123/folder/name.pdf -> folder/name.
    Raw resources keep their extension in the public_id.
    """
    match = _HOSTED_URL.search(url or "")
    if not match:
        return None
    if match.group("resource_type") == "raw":
        return match.group("path")
    stripped = _EXTENSION.sub("", match.group("path"))
    return stripped if stripped != match.group("path") else None


def resource_type_from_url(url: str) -> str:
    """image, video or raw, as named in the hosted URL; image when the URL does not say."""
    match = _HOSTED_URL.search(url or "")
    return (match.group("resource_type") if match else None) or "image"


class HostedMediaStore(MediaStore):
    """Signed uploads and deletes against the hosted media REST API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "",
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not (cloud_name and api_key and api_secret):
            raise MediaStoreError("hosted media store needs cloud name, api key and api secret")
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _sign(self, params: dict[str, str]) -> str:
        # sha1 over the alphabetically sorted "k=v" pairs followed by the secret
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1((to_sign + self.api_secret).encode("utf-8")).hexdigest()

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        params = {k: v for k, v in params.items() if v}
        params["timestamp"] = str(int(time.time()))
        return {**params, "api_key": self.api_key, "signature": self._sign(params)}

    async def _post(self, path: str, data: dict[str, str], files: Optional[dict] = None) -> dict:
        url = f"{self.base_url}/{self.cloud_name}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise MediaStoreError(f"media host request failed: {e}") from e

    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> StoredMedia:
        params = self._signed({"folder": self.folder})
        body = await self._post(
            "auto/upload",
            data=params,
            files={"file": (filename, data, content_type or "application/octet-stream")},
        )
        url = body.get("secure_url") or body.get("url")
        public_id = body.get("public_id")
        if not url or not public_id:
            raise MediaStoreError("media host response is missing url or public_id")
        resource_type = body.get("resource_type") or "image"
        logger.info("media uploaded public_id=%s type=%s bytes=%d", public_id, resource_type, len(data))
        return StoredMedia(url=url, public_id=public_id, resource_type=resource_type)

    async def destroy(self, public_id: str, resource_type: str = "image") -> None:
        body = await self._post(f"{resource_type}/destroy", data=self._signed({"public_id": public_id}))
        logger.info("media destroyed public_id=%s type=%s result=%s", public_id, resource_type, body.get("result"))


class LocalMediaStore(MediaStore):
    """Keeps files in a local directory served under url_prefix."""

    def __init__(self, directory: str | Path, url_prefix: str = "/uploads"):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> StoredMedia:
        self.directory.mkdir(parents=True, exist_ok=True)
        name = safe_filename(filename)
        (self.directory / name).write_bytes(data)
        return StoredMedia(url=f"{self.url_prefix}/{name}", public_id=name)

    async def destroy(self, public_id: str, resource_type: str = "image") -> None:
        path = self.directory / Path(public_id).name
        if path.exists():
            path.unlink()


@lru_cache
def get_media_store() -> MediaStore:
    """FastAPI dependency: the configured media backend."""
    if settings.media_backend == "hosted":
        return HostedMediaStore(
            cloud_name=settings.media_cloud_name,
            api_key=settings.media_api_key,
            api_secret=settings.media_api_secret,
            folder=settings.media_folder,
        )
    return LocalMediaStore(Path(settings.uploads_dir) / "media", url_prefix="/uploads/media")


async def save_attachment(upload: UploadFile, directory: str | Path) -> dict:
    """Store a topic attachment on disk and return its attachment record."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    name = safe_filename(upload.filename or "file")
    (directory / name).write_bytes(await upload.read())
    return {"filename": name, "path": f"/uploads/{name}", "original_name": upload.filename or name}


def remove_attachments(attachments: list[dict] | None, directory: str | Path) -> int:
    """Delete attachment files that still exist; returns how many were removed."""
    removed = 0
    for a in attachments or []:
        path = Path(directory) / Path(a.get("filename", "")).name
        if a.get("filename") and path.exists():
            path.unlink()
            removed += 1
    return removed
