"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Single-file removal: to the system trash (default) or permanently.
"""
import os
from pathlib import Path

from send2trash import send2trash


class FileService:
    """
    File removal helpers. Every failure surfaces as RuntimeError
    so callers have a single exception type to absorb per file.
    """

    @staticmethod
    def move_to_trash(file_path: str):
        """Moves a file to the system trash."""
        path = Path(file_path)

        if not path.exists():
            raise RuntimeError(f"File not found: {path}")

        try:
            send2trash(str(path))
        except Exception as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e

    @staticmethod
    def delete_permanently(file_path: str):
        """Unlinks a file. There is no way back."""
        try:
            os.remove(file_path)
        except FileNotFoundError as e:
            raise RuntimeError(f"File not found: {file_path}") from e
        except OSError as e:
            raise RuntimeError(f"Failed to delete: {e}") from e

    @classmethod
    def remove(cls, file_path: str, permanent: bool = False):
        if permanent:
            cls.delete_permanently(file_path)
        else:
            cls.move_to_trash(file_path)
