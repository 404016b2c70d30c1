"""
Output Manager - owns the generated source directory.

Creates the directory on first use and tracks how much was written so the
CLI can report a summary at the end of a run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

__all__ = ['OutputManager']


class OutputManager:
    """Writes the files of one disassembly into ``base_dir``."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.logger = logging.getLogger(__name__)

        self.base_dir.mkdir(parents=True, exist_ok=True)

        # Statistics
        self.files_written = 0
        self.bytes_written = 0

    def get_output_path(self, filename: str) -> Path:
        return self.base_dir / filename

    def write_text(self, content: str, filename: str,
                   encoding: str = 'utf-8') -> Path:
        """
        Write a text file with ``\\n`` line endings.

        Args:
            content: Text content
            filename: File name inside the output directory
            encoding: Text encoding

        Returns:
            Path to written file
        """
        output_path = self.get_output_path(filename)

        with open(output_path, 'w', encoding=encoding, newline='\n') as f:
            f.write(content)

        self.files_written += 1
        self.bytes_written += output_path.stat().st_size
        self.logger.debug("Wrote text: %s", output_path)

        return output_path

    def write_binary(self, data: bytes, filename: str) -> Path:
        """Write ``data`` verbatim; returns the path written."""
        output_path = self.get_output_path(filename)

        with open(output_path, 'wb') as f:
            f.write(data)

        self.files_written += 1
        self.bytes_written += len(data)
        self.logger.debug("Wrote binary: %s (%d bytes)", output_path, len(data))

        return output_path

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'files_written': self.files_written,
            'bytes_written': self.bytes_written,
            'base_dir': str(self.base_dir.absolute()),
        }

    def log_summary(self):
        """Log the output summary at INFO."""
        stats = self.get_statistics()
        self.logger.info(
            "Wrote %d file(s), %d bytes to %s",
            stats['files_written'], stats['bytes_written'], stats['base_dir'],
        )
