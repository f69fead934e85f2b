"""
File I/O for comparison inputs and merged output.

Handles:
- Encoding detection
- Rejecting binary files
- Line ending detection
- Atomic writes
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

import chardet


logger = logging.getLogger(__name__)


class LineEnding(Enum):
    """Line ending style."""
    LF = auto()      # Unix: \n
    CRLF = auto()    # Windows: \r\n
    CR = auto()      # Old Mac: \r
    MIXED = auto()   # Mixed endings
    NONE = auto()    # Single line without ending


@dataclass
class TextFile:
    """Decoded text file with the metadata needed to write it back."""
    text: str
    encoding: str
    line_ending: LineEnding
    bom: bool
    size: int


@dataclass
class ReadResult:
    """Result of a file read operation."""
    success: bool
    file: Optional[TextFile] = None
    error: Optional[str] = None
    is_binary: bool = False


@dataclass
class WriteResult:
    """Result of a file write operation."""
    success: bool
    bytes_written: int = 0
    error: Optional[str] = None


def detect_line_ending(text: str) -> LineEnding:
    """Detect the line ending style of a text."""
    crlf_count = text.count('\r\n')
    lf_count = text.count('\n') - crlf_count
    cr_count = text.count('\r') - crlf_count

    total = crlf_count + lf_count + cr_count
    if total == 0:
        return LineEnding.NONE
    if crlf_count == total:
        return LineEnding.CRLF
    if lf_count == total:
        return LineEnding.LF
    if cr_count == total:
        return LineEnding.CR
    return LineEnding.MIXED


class TextFileService:
    """Reads comparison inputs and writes merged results."""

    # Binary file signatures (magic bytes)
    BINARY_SIGNATURES = [
        b'\x89PNG',        # PNG
        b'\xff\xd8\xff',   # JPEG
        b'GIF8',           # GIF
        b'PK\x03\x04',     # ZIP
        b'\x1f\x8b',       # GZIP
        b'%PDF',           # PDF
        b'\x7fELF',        # ELF
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        binary_check_size: int = 8192,
        min_confidence: float = 0.7
    ):
        self.default_encoding = default_encoding
        self.binary_check_size = binary_check_size
        self.min_confidence = min_confidence

    def read_text(
        self,
        path: Path | str,
        encoding: Optional[str] = None,
        max_size: Optional[int] = None
    ) -> ReadResult:
        """
        Read a text file with automatic encoding detection.

        Args:
            path: Path to the file
            encoding: Force a specific encoding (auto-detect if None)
            max_size: Maximum file size in bytes

        Returns:
            ReadResult with the decoded file or an error
        """
        path = Path(path)

        if not path.exists():
            return ReadResult(success=False, error=f"File not found: {path}")
        if not path.is_file():
            return ReadResult(success=False, error=f"Not a file: {path}")

        try:
            raw = path.read_bytes()
        except PermissionError:
            return ReadResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            return ReadResult(success=False, error=f"Could not read {path}: {e}")

        if max_size is not None and len(raw) > max_size:
            return ReadResult(
                success=False,
                error=f"File too large: {path} ({len(raw) / 1024 / 1024:.1f}MB)",
            )

        if self.is_binary(raw[:self.binary_check_size]):
            return ReadResult(success=False, error=f"Binary file: {path}", is_binary=True)

        bom = raw.startswith(b'\xef\xbb\xbf')
        if bom:
            raw = raw[3:]
            encoding = encoding or 'utf-8'

        encoding = encoding or self.detect_encoding(raw)
        try:
            text = raw.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            logger.warning("Decoding %s as %s failed (%s), replacing invalid bytes",
                           path, encoding, e)
            encoding = self.default_encoding
            text = raw.decode(encoding, errors='replace')

        logger.debug("Read %s (%d bytes, %s)", path, len(raw), encoding)
        return ReadResult(
            success=True,
            file=TextFile(text, encoding, detect_line_ending(text), bom, len(raw)),
        )

    def write_text(
        self,
        path: Path | str,
        text: str,
        encoding: str = 'utf-8',
        atomic: bool = True
    ) -> WriteResult:
        """
        Write text to a file.

        Args:
            path: Path to write to
            text: Content, written as is
            encoding: Encoding to use
            atomic: Write to a temporary file then move it into place

        Returns:
            WriteResult with success status
        """
        path = Path(path)

        try:
            encoded = text.encode(encoding)
            path.parent.mkdir(parents=True, exist_ok=True)

            if atomic:
                fd, temp_path = tempfile.mkstemp(dir=path.parent)
                try:
                    with os.fdopen(fd, 'wb') as f:
                        f.write(encoded)
                    shutil.move(temp_path, path)
                except Exception:
                    if os.path.exists(temp_path):
                        os.unlink(temp_path)
                    raise
            else:
                path.write_bytes(encoded)

            return WriteResult(success=True, bytes_written=len(encoded))

        except UnicodeEncodeError as e:
            return WriteResult(success=False, error=f"Cannot encode as {encoding}: {e}")
        except PermissionError:
            return WriteResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            return WriteResult(success=False, error=f"OS error: {e}")

    def is_binary(self, chunk: bytes) -> bool:
        """Check whether leading bytes look like a binary file."""
        if any(chunk.startswith(sig) for sig in self.BINARY_SIGNATURES):
            return True
        if b'\x00' in chunk:
            return True

        # Ratio of control characters other than tab/newline/carriage return
        non_text = sum(1 for b in chunk if b < 9 or 13 < b < 32)
        return len(chunk) > 0 and non_text / len(chunk) > 0.3

    def detect_encoding(self, content: bytes) -> str:
        """Detect the encoding of raw content."""
        if not content:
            return self.default_encoding

        result = chardet.detect(content)
        if result['encoding'] and result['confidence'] > self.min_confidence:
            encoding = result['encoding'].lower()
            if encoding == 'ascii':
                return 'utf-8'  # ASCII is a subset of UTF-8
            return encoding

        return self.default_encoding
