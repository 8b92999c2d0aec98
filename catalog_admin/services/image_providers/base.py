"""
Abstract base class for image providers
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, NamedTuple, Optional


class StoredImage(NamedTuple):
    name: str
    modified_at: datetime


class ImageProvider(ABC):
    """Abstract interface for image storage providers"""

    @abstractmethod
    def upload_image(self, image_data: bytes, filename: str, field_name: str = "image") -> str:
        """
        Store a new image under a freshly generated name.

        Args:
            image_data: Image bytes
            filename: Name the client gave the file (only its extension is kept)
            field_name: Form field the file arrived in, used as name prefix

        Returns:
            The generated image name

        Raises:
            OSError: the image could not be written
        """
        pass

    @abstractmethod
    def delete_image(self, image_name: str) -> bool:
        """
        Delete an image. Deleting a missing image is not an error.

        Returns:
            True if a file was removed, False if it was already gone

        Raises:
            OSError: the image exists but could not be removed
        """
        pass

    @abstractmethod
    def list_images(self) -> List[StoredImage]:
        """
        List every image currently held by the store.
        """
        pass

    @abstractmethod
    def get_image_url(self, image_name: str) -> str:
        """
        Get the reference stored on records for an image.
        """
        pass

    @abstractmethod
    def image_name_from_url(self, image_url: Optional[str]) -> Optional[str]:
        """
        Inverse of get_image_url.

        Returns:
            The image name for a reference owned by this store, None for empty
            values and for references it does not own (external URLs)
        """
        pass
