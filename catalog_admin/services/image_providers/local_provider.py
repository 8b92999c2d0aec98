"""
Local filesystem image provider
"""
import logging
import os
import re
import secrets
import time
from datetime import datetime, timezone
from typing import List, Optional

from catalog_admin.config import settings
from catalog_admin.services.image_providers.base import ImageProvider, StoredImage

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")
_EXTERNAL_PREFIXES = ("http://", "https://", "//")


def is_external_url(image_url: Optional[str]) -> bool:
    return bool(image_url) and image_url.lower().startswith(_EXTERNAL_PREFIXES)


class LocalImageProvider(ImageProvider):
    """Stores images as flat files in one directory

    Generated names look like ``image-1717171717171-123456789.jpg``: the form
    field name, epoch milliseconds, a random suffix and the original extension.
    """

    def __init__(self, upload_dir: Optional[str] = None, url_prefix: Optional[str] = None):
        self.upload_dir = os.path.abspath(upload_dir or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
        os.makedirs(self.upload_dir, exist_ok=True)

    def _path_for(self, image_name: str) -> str:
        # Flat store: anything that is not a plain file name is refused
        if not image_name or os.path.basename(image_name) != image_name or image_name in (".", ".."):
            raise ValueError(f"Invalid image name: {image_name!r}")
        return os.path.join(self.upload_dir, image_name)

    @staticmethod
    def generate_name(filename: str, field_name: str = "image") -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        if not _EXTENSION_RE.match(extension):
            extension = ""
        suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{field_name}-{suffix}{extension}"

    def upload_image(self, image_data: bytes, filename: str, field_name: str = "image") -> str:
        image_name = self.generate_name(filename, field_name)
        path = self._path_for(image_name)
        # "x" mode never overwrites an existing file
        with open(path, "xb") as handle:
            handle.write(image_data)
        logger.info(f"Stored image {image_name} ({len(image_data)} bytes)")
        return image_name

    def delete_image(self, image_name: str) -> bool:
        path = self._path_for(image_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        logger.info(f"Deleted image {image_name}")
        return True

    def list_images(self) -> List[StoredImage]:
        images = []
        with os.scandir(self.upload_dir) as entries:
            for entry in entries:
                if not entry.is_file() or entry.name.startswith("."):
                    continue
                modified_at = datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)
                images.append(StoredImage(entry.name, modified_at))
        return sorted(images)

    def exists(self, image_name: str) -> bool:
        return os.path.isfile(self._path_for(image_name))

    def get_image_url(self, image_name: str) -> str:
        return f"{self.url_prefix}/{image_name}"

    def image_name_from_url(self, image_url: Optional[str]) -> Optional[str]:
        if not image_url or is_external_url(image_url):
            return None
        prefix = self.url_prefix + "/"
        name = image_url[len(prefix):] if image_url.startswith(prefix) else image_url
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return name
