"""
Image uploads to the asset host.

Files are checked locally (image type sniffed with Pillow, size limit per
kind) before any request is made. Accepted files are posted as multipart
form data with the fixed upload preset; the host answers with a durable
HTTPS URL.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from .utils.errors import ConfigurationError, UploadError

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"
GENERIC_UPLOAD_FAILURE = "Yükleme başarısız"

MB = 1024 * 1024


@dataclass(frozen=True)
class UploadKind:
    """
    Accepted types and size limit for one kind of upload.

    Attributes:
        name: "logo" or "photo"
        formats: Pillow format names that are accepted
        max_size: Size limit in bytes
        type_message: Shown when the file is not an accepted image
        size_message: Shown when the file is over the limit
    """

    name: str
    formats: Tuple[str, ...]
    max_size: int
    type_message: str
    size_message: str


LOGO = UploadKind(
    name="logo",
    formats=("PNG", "JPEG", "WEBP"),
    max_size=2 * MB,
    type_message="Lütfen PNG, JPG veya WEBP formatında bir dosya seçin",
    size_message="Dosya boyutu 2MB'dan küçük olmalıdır",
)

PHOTO = UploadKind(
    name="photo",
    formats=("PNG", "JPEG", "GIF", "WEBP"),
    max_size=10 * MB,
    type_message="Lütfen PNG, JPG, GIF veya WEBP formatında bir dosya seçin",
    size_message="Dosya boyutu 10MB'dan küçük olmalıdır",
)


def sniff_image_format(data: bytes) -> Optional[str]:
    """Pillow format name ("PNG", "JPEG", ...) of the image in data, or None."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.format
    except (UnidentifiedImageError, OSError):
        return None


def validate_upload(data: bytes, kind: UploadKind) -> str:
    """
    Check an upload against its kind's rules.

    Returns:
        MIME type of the image

    Raises:
        UploadError: With the user-facing message for the first failed rule
    """
    image_format = sniff_image_format(data)
    if image_format not in kind.formats:
        logger.warning(f"Rejected {kind.name} upload: unsupported type {image_format}")
        raise UploadError(kind.type_message)

    if len(data) > kind.max_size:
        logger.warning(f"Rejected {kind.name} upload: {len(data)} bytes over {kind.max_size}")
        raise UploadError(kind.size_message)

    return Image.MIME.get(image_format, "application/octet-stream")


class AssetUploader:
    """
    Client for the image host's unsigned upload endpoint.

    Args:
        cloud_name: Account name in the upload URL
        upload_preset: Fixed upload profile identifier
        timeout: HTTP timeout in seconds
    """

    def __init__(self, cloud_name: str, upload_preset: str, timeout: float = 60):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AssetUploader":
        assets = config.get("assets", {})
        return cls(assets.get("cloud_name", ""), assets.get("upload_preset", ""))

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    @property
    def upload_url(self) -> str:
        return UPLOAD_URL.format(cloud_name=self.cloud_name)

    def upload(self, data: bytes, filename: str, kind: UploadKind = PHOTO) -> str:
        """
        Validate and upload an image.

        Returns:
            Durable HTTPS URL of the uploaded image

        Raises:
            UploadError: If validation fails (no request is made) or the host rejects it
            ConfigurationError: If the host account is not configured
        """
        mime_type = validate_upload(data, kind)

        if not self.configured:
            raise ConfigurationError("assets.cloud_name and assets.upload_preset must be set to upload")

        logger.info(f"Uploading {kind.name} {filename} ({len(data)} bytes)")
        try:
            response = requests.post(
                self.upload_url,
                files={"file": (filename, data, mime_type)},
                data={"upload_preset": self.upload_preset},
                timeout=self.timeout,
            )
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Upload of {filename} failed: {e}")
            raise UploadError(str(e)) from e
        except ValueError as e:
            logger.error(f"Upload of {filename} returned a non-JSON response: {e}")
            raise UploadError(GENERIC_UPLOAD_FAILURE) from e

        if not isinstance(payload, dict):
            raise UploadError(GENERIC_UPLOAD_FAILURE)

        secure_url = payload.get("secure_url")
        if not secure_url:
            error = payload.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else None
            logger.error(f"Upload of {filename} rejected: {message or response.status_code}")
            raise UploadError(message or GENERIC_UPLOAD_FAILURE)

        logger.info(f"Uploaded {filename} to {secure_url}")
        return secure_url

    def upload_file(self, path: str, kind: UploadKind = PHOTO) -> str:
        """Read a local file and upload it."""
        file_path = Path(path).expanduser()
        try:
            data = file_path.read_bytes()
        except OSError as e:
            raise UploadError(f"Dosya okunamadı: {e}") from e
        return self.upload(data, file_path.name, kind)
