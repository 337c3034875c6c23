"""
Container writer options
"""

from pydantic import ValidationInfo, field_validator

from .base import BaseOptions, resolve_path

DEFAULT_CONTAINER_FILENAME = 'container.py'


class ContainerWriterOptions(BaseOptions):
    """
    filename: Output file; relative names resolve against the cwd given
        to from_dict(), the default is container.py in that directory.
    force: Overwrite an existing file.
    mock_write: Do everything except touching the disk.
    """

    filename: str = DEFAULT_CONTAINER_FILENAME
    force: bool = False
    mock_write: bool = False

    @field_validator('filename')
    @classmethod
    def _resolve_filename(cls, value: str, info: ValidationInfo) -> str:
        if not value.strip():
            raise ValueError("filename cannot be empty")
        path = resolve_path(value.strip(), info)
        if path.is_dir():
            raise ValueError(f"'{value}' is a directory")
        return str(path)
