"""
Filesystem storage for uploaded cover images.
"""

import os
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Union

from utilities.logger import get_logger

from .errors import FilesystemError
from .models import UploadedCover

logger = get_logger(__name__)


class CoverStorage:
    """
    Stores cover uploads in a destination directory.

    Uploads are first written under a random temporary name; the book
    workflow later renames them to their sanitized filename.
    """

    def __init__(self, destination: Union[str, Path]):
        self.destination = Path(destination)

    def ensure_destination(self) -> None:
        """Create the destination directory if it does not exist."""
        self.destination.mkdir(parents=True, exist_ok=True)

    def stage_upload(self, fileobj: BinaryIO, original_filename: str) -> UploadedCover:
        """
        Write an incoming upload to a temporary file in the destination.

        Args:
            fileobj: Readable binary stream with the upload contents
            original_filename: Filename as sent by the client

        Returns:
            UploadedCover describing the staged file
        """
        self.ensure_destination()
        temp_path = self.destination / uuid.uuid4().hex
        try:
            with open(temp_path, "wb") as target:
                shutil.copyfileobj(fileobj, target)
        except OSError as e:
            logger.error("Failed to stage cover upload", filename=original_filename, error=str(e))
            raise FilesystemError(f"Could not store upload {original_filename!r}") from e

        logger.debug("Cover upload staged", filename=original_filename, temp_path=str(temp_path))
        return UploadedCover(
            temp_path=temp_path,
            original_filename=original_filename,
            destination=self.destination
        )

    def rename(self, temp_path: Union[str, Path], final_path: Union[str, Path]) -> None:
        """
        Move a staged file to its final name, replacing any existing file.

        Raises:
            FilesystemError: If the move fails
        """
        try:
            os.replace(temp_path, final_path)
        except OSError as e:
            raise FilesystemError(f"Could not rename {temp_path} to {final_path}") from e
        logger.debug("Cover file renamed", source=str(temp_path), target=str(final_path))

    def discard(self, cover: UploadedCover) -> None:
        """Remove a staged upload that was never attached to a book."""
        try:
            Path(cover.temp_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to discard staged cover", temp_path=str(cover.temp_path), error=str(e))
