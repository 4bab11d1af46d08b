"""Media storage for avatars and cover images via Cloudinary or a local directory."""

import hashlib
import os
import shutil
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

import httpx
from fastapi import UploadFile

from vidtube.config import settings
from vidtube.exceptions import MediaStorageError
from vidtube.logger import storage_logger

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"


@dataclass
class MediaAsset:
    """Stored media file."""

    url: str
    public_id: str


def public_id_from_url(url: str) -> str:
    """Cloudinary public id: last path segment without its extension."""
    return url.rstrip("/").split("/")[-1].split(".")[0]


def _sign(params: dict, api_secret: str) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


async def save_upload_to_temp(upload: UploadFile) -> str:
    """
    Write an uploaded file to the temp upload dir.

    Returns:
        Local path of the written file
    """
    os.makedirs(settings.upload_tmp_dir, exist_ok=True)
    name = Path(upload.filename or "upload").name
    file_path = os.path.join(settings.upload_tmp_dir, f"{uuid.uuid4().hex}_{name}")

    content = await upload.read()
    with open(file_path, "wb") as f:
        f.write(content)

    return file_path


def discard_temp(local_path: str | None) -> None:
    """Remove a temp upload that was never handed to storage."""
    if not local_path:
        return
    try:
        os.remove(local_path)
    except FileNotFoundError:
        pass


class MediaStorage:
    """
    Upload and delete media files.

    Uses Cloudinary when credentials are configured, otherwise copies files
    into settings.media_dir and serves them from settings.media_base_url.
    The local source file is always removed after an upload attempt.
    """

    async def upload(self, local_path: str | None) -> MediaAsset | None:
        """
        Store a local file and return its public URL.

        Returns:
            MediaAsset, or None when no path was given

        Raises:
            MediaStorageError: upload failed
        """
        if not local_path:
            return None
        if not os.path.isfile(local_path):
            raise MediaStorageError(f"File not found: {Path(local_path).name}")

        try:
            if settings.use_cloudinary:
                return await self._upload_cloudinary(local_path)
            return self._upload_local(local_path)
        finally:
            discard_temp(local_path)

    async def delete(self, url: str | None) -> bool:
        """
        Delete a previously stored file. Failures are logged, not raised.

        Returns:
            True if the file was deleted
        """
        if not url:
            return False

        try:
            if settings.use_cloudinary:
                return await self._delete_cloudinary(url)
            return self._delete_local(url)
        except (httpx.HTTPError, OSError, ValueError) as e:
            storage_logger.warning(f"Failed to delete media {url}: {e}")
            return False

    async def _upload_cloudinary(self, local_path: str) -> MediaAsset:
        params = {"timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": settings.cloudinary_api_key,
            "signature": _sign(params, settings.cloudinary_api_secret),
        }
        upload_url = f"{CLOUDINARY_API_URL}/{settings.cloudinary_cloud_name}/auto/upload"

        try:
            async with httpx.AsyncClient() as client:
                with open(local_path, "rb") as f:
                    response = await client.post(
                        upload_url,
                        data=data,
                        files={"file": (Path(local_path).name, f)},
                        timeout=60.0,
                    )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            storage_logger.error(f"Cloudinary upload failed: {e}")
            raise MediaStorageError() from e

        url = body.get("secure_url") or body.get("url")
        if not url:
            storage_logger.error("Cloudinary upload returned no URL")
            raise MediaStorageError()

        storage_logger.info(f"Uploaded media to Cloudinary: {body.get('public_id')}")
        return MediaAsset(url=url, public_id=body.get("public_id") or public_id_from_url(url))

    async def _delete_cloudinary(self, url: str) -> bool:
        params = {"public_id": public_id_from_url(url), "timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": settings.cloudinary_api_key,
            "signature": _sign(params, settings.cloudinary_api_secret),
        }
        destroy_url = f"{CLOUDINARY_API_URL}/{settings.cloudinary_cloud_name}/image/destroy"

        async with httpx.AsyncClient() as client:
            response = await client.post(destroy_url, data=data, timeout=30.0)
            response.raise_for_status()
            result = response.json().get("result")

        storage_logger.debug(f"Cloudinary destroy {params['public_id']}: {result}")
        return result == "ok"

    def _upload_local(self, local_path: str) -> MediaAsset:
        os.makedirs(settings.media_dir, exist_ok=True)
        suffix = Path(local_path).suffix
        public_id = uuid.uuid4().hex
        target = os.path.join(settings.media_dir, f"{public_id}{suffix}")

        try:
            shutil.copyfile(local_path, target)
        except OSError as e:
            storage_logger.error(f"Local media write failed: {e}")
            raise MediaStorageError() from e

        url = f"{settings.media_base_url.rstrip('/')}/{public_id}{suffix}"
        storage_logger.info(f"Stored media locally: {target}")
        return MediaAsset(url=url, public_id=public_id)

    def _delete_local(self, url: str) -> bool:
        base = settings.media_base_url.rstrip("/") + "/"
        if not url.startswith(base):
            return False

        target = os.path.join(settings.media_dir, Path(url[len(base):]).name)
        if not os.path.isfile(target):
            return False

        os.remove(target)
        return True


media_storage = MediaStorage()


def get_media_storage() -> MediaStorage:
    """Dependency for getting the media storage."""
    return media_storage
