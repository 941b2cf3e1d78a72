from pathlib import Path

from petition_scoring.database.models import FileRecord
from petition_scoring.processor.exceptions import FileReadError, UnsupportedStorageDiskError


class FileLoader:
    """Resolves the storage locator of an uploaded file and reads its bytes."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, file: FileRecord) -> bytes:
        """Read file bytes from storage.

        Raises:
            FileNotFoundError: if the file does not exist at resolved path.
            UnsupportedStorageDiskError: if storage_disk is not 'local'.
            FileReadError: if the locator escapes the storage root or cannot be read.
        """
        if file.storage_disk != "local":
            raise UnsupportedStorageDiskError(
                f"storage_disk '{file.storage_disk}' is not supported"
            )
        path = self._resolve_path(file)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc

    def _resolve_path(self, file: FileRecord) -> Path:
        root = self._files_root.resolve()
        path = (root / file.storage_path.lstrip("/")).resolve()
        if not path.is_relative_to(root):
            raise FileReadError(f"Storage path escapes files root: {file.storage_path}")
        return path
