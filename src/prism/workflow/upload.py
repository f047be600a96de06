"""CSV dataset upload."""

import logging
from pathlib import Path

from prism.core.client import PrismClient
from prism.error_handling import ErrorResolver, SessionError
from prism.utils.validation import ValidationError, validate_csv_path
from prism.workflow.directory import ResourceDirectory

logger = logging.getLogger(__name__)


class DatasetUploader:
    """Uploads one chosen CSV file, then refreshes the directory."""

    def __init__(self, client: PrismClient, directory: ResourceDirectory | None = None):
        self.client = client
        self.directory = directory
        self._resolver = ErrorResolver("Upload failed")
        self.file: Path | None = None
        self.uploading = False
        self.error: str | None = None
        self.success: str | None = None

    def choose_file(self, path: str | Path) -> Path:
        """Choose the file to upload.

        Raises:
            ValidationError: If the file is not a CSV file or does not exist
        """
        try:
            self.file = validate_csv_path(path)
        except ValidationError as e:
            self.error = e.message
            raise
        self.error = None
        return self.file

    async def upload(self) -> bool:
        """Upload the chosen file.

        Returns:
            True on success; on failure the message is recorded in ``error``

        Raises:
            ValidationError: If no file has been chosen
            SessionError: If the session ended during the upload
        """
        if self.file is None:
            raise ValidationError("Please select a file", ["file"])

        self.uploading = True
        self.error = None
        self.success = None
        try:
            await self.client.upload_dataset(self.file)
        except SessionError:
            raise
        except Exception as e:
            self.error = self._resolver.report(e)
            return False
        finally:
            self.uploading = False

        logger.info(f"Uploaded dataset {self.file.name}")
        self.file = None
        self.success = "Dataset uploaded successfully!"
        if self.directory:
            await self.directory.refresh()
        return True
