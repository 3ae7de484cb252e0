import aiofiles
import aiofiles.os
from pathlib import Path
from typing import Any
from app.core.config import get_settings
from app.core.exceptions import SourceFileNotFoundError

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".xlsx", ".txt")


class StorageService:
    """Files in the data directory: source documents and questionnaires, addressed by filename."""

    def __init__(self, data_dir: str | Path | None = None):
        self.data_dir = Path(data_dir or get_settings().data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, filename: str) -> Path:
        """Get file path with path traversal protection."""
        if not filename or ".." in filename or filename.startswith("/") or filename.startswith("\\"):
            raise ValueError(f"Invalid filename: {filename}")

        file_path = (self.data_dir / filename).resolve()

        if not str(file_path).startswith(str(self.data_dir.resolve())):
            raise ValueError(f"Path traversal attempt detected: {filename}")

        return file_path

    async def list_files(self) -> list[str]:
        """Names of importable files, sorted."""
        if not await aiofiles.os.path.exists(self.data_dir):
            return []
        names = await aiofiles.os.listdir(self.data_dir)
        return sorted(n for n in names if n.lower().endswith(SUPPORTED_EXTENSIONS))

    async def get_file_path(self, filename: str) -> Path:
        file_path = self._get_file_path(filename)
        if not await aiofiles.os.path.exists(file_path):
            raise SourceFileNotFoundError(f"File {filename} not found")
        return file_path

    async def read_file(self, filename: str) -> bytes:
        file_path = await self.get_file_path(filename)
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def save_upload_file(self, upload_file: Any, max_size: int) -> tuple[str, int]:
        """Stream an upload into the data directory under its own name.

        Returns the stored filename and its size. An existing file with the same
        name is overwritten.
        """
        filename = Path(getattr(upload_file, "filename", "") or "").name
        if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
            raise ValueError(f"Unsupported file type: {filename or '<unnamed>'}")
        file_path = self._get_file_path(filename)

        bytes_read = 0
        try:
            async with aiofiles.open(file_path, "wb") as f:
                while chunk := await upload_file.read(8192):
                    bytes_read += len(chunk)
                    if bytes_read > max_size:
                        raise ValueError("File size exceeds limit")
                    await f.write(chunk)

            if bytes_read == 0:
                raise ValueError("Empty file")
        except Exception:
            if await aiofiles.os.path.exists(file_path):
                await aiofiles.os.remove(file_path)
            raise

        return filename, bytes_read

