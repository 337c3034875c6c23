"""
Container file writer
"""

import os
import tempfile
from pathlib import Path

from dibuild.exceptions import WriteError
from dibuild.logging import get_logger
from dibuild.options import ContainerWriterOptions

logger = get_logger(__name__)


class ContainerFileWriter:
    """
    Persists the dumped container.

    The content goes to a temporary file next to the target which is then
    renamed over it, so a failed write leaves any existing file untouched.
    """

    def __init__(self, options: ContainerWriterOptions):
        self.options = options

    @property
    def filename(self) -> str:
        return self.options.filename

    def check(self) -> None:
        """
        Raises:
            WriteError: The target exists and force is not set
        """
        if os.path.exists(self.filename) and not self.options.force:
            raise WriteError(
                f"File '{self.filename}' already exists, use force to overwrite it",
                filename=self.filename,
            )

    def write(self, content: str) -> bool:
        """
        Write `content` to the configured file.

        Returns:
            False when mock_write is set and nothing was written

        Raises:
            WriteError: The target exists without force, or an I/O error
        """
        self.check()

        if self.options.mock_write:
            logger.info("Mock write: %d bytes not written to %s", len(content), self.filename)
            return False

        target = Path(self.filename)
        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise WriteError(
                f"Cannot write '{self.filename}': {e.strerror or e}",
                filename=self.filename,
                original_error=e,
            )

        logger.info("Container written to %s (%d bytes)", self.filename, len(content))
        return True
