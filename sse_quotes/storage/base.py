from abc import ABC, abstractmethod
from pathlib import Path


class BaseStorage(ABC):
    """
    Abstract base class for the object storage interface.

    Artifacts are addressed by ``(bucket, key)``; an artifact is never
    overwritten, so its presence is what lets a re-run skip finished work.
    """

    @abstractmethod
    async def exists_at(self, bucket: str, key: str) -> bool:
        """
        Check if an artifact exists.

        Args:
            bucket (str): The bucket name.
            key (str): The object key.

        Returns:
            bool: True if the object exists, False if the store reports it missing.

        Raises:
            StorageError: For any failure other than "not found".
        """

    @abstractmethod
    async def ensure_bucket(self, bucket: str) -> None:
        """Creates the bucket unless it already exists.

        Args:
            bucket (str): The bucket name.

        Raises:
            StorageError: If the bucket can neither be found nor created.
        """

    @abstractmethod
    async def upload_file(
        self,
        bucket: str,
        key: str,
        path: Path,
        *,
        public: bool = False,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Uploads a local file.

        Args:
            bucket (str): The bucket name.
            key (str): The object key.
            path (Path): Local file to upload.
            public (bool): If True, the object is readable by anyone.
            content_type (str): MIME type stored with the object.

        Returns:
            str: The URL of the uploaded object.

        Raises:
            StorageError: If the upload fails.
        """

    @abstractmethod
    async def upload_text(self, bucket: str, key: str, text: str) -> str:
        """Uploads a private UTF-8 text object.

        Returns:
            str: The URL of the uploaded object.

        Raises:
            StorageError: If the upload fails.
        """

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        """Constructs the URL an object can be fetched from.

        Args:
            bucket (str): The bucket name.
            key (str): The object key.

        Return:
            str: The absolute URL of the object.
        """
