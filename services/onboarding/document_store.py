"""
Generated Document Store

Generated PDFs live in a single output directory named
``<timestamp>[_<employee-slug>]_<step-slug>.pdf``. The name is the only
index: the most recent document for a step is found by slug and recency.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from utils import slugify, to_display
from .types import GeneratedDocument

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = '/output/'


def format_timestamp(moment: datetime) -> str:
    """
    ISO-8601 UTC with millisecond precision, ``:`` and ``.`` replaced by ``-``.

    Example:
        2025-03-01T09:15:02.123Z -> 2025-03-01T09-15-02-123Z
    """
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H-%M-%S-') + f"{moment.microsecond // 1000:03d}Z"


def build_filename(step: str, employee_key: Optional[str], moment: datetime) -> str:
    employee_part = slugify(to_display(employee_key)) if employee_key else ''
    name = format_timestamp(moment)
    if employee_part:
        name += f"_{employee_part}"
    return f"{name}_{slugify(step)}.pdf"


class DocumentStore:
    """
    Reads and writes generated PDFs.

    Attributes:
        directory: Output directory, created on first use
    """

    def __init__(self, directory, clock=None):
        self.directory = Path(directory)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def public_url(self, filename: str) -> str:
        return f"{PUBLIC_PREFIX}{filename}"

    def save(self, content: bytes, step: str, employee_key: Optional[str] = None) -> GeneratedDocument:
        """
        Write ``content`` under a fresh timestamped name.

        Two saves in the same millisecond get distinct names; the later one
        is stamped one millisecond on.

        Raises:
            OSError: The file could not be written
        """
        self.ensure_directory()
        moment = self._clock()
        filename = build_filename(step, employee_key, moment)
        while (self.directory / filename).exists():
            moment += timedelta(milliseconds=1)
            filename = build_filename(step, employee_key, moment)

        path = self.directory / filename
        # 'xb' fails instead of overwriting a file created since the check above
        with open(path, 'xb') as f:
            f.write(content)
        logger.info(f"Saved generated document {filename} ({len(content)} bytes)")

        return GeneratedDocument(
            step_key=step,
            employee_key=employee_key,
            created_at=moment,
            file_path=str(path),
            file_url=self.public_url(filename),
        )

    def find_latest_pdf_by_step(self, step_key: Optional[str]) -> Optional[Path]:
        """Most recent PDF whose name ends with ``_<step-slug>.pdf``, or None."""
        if not self.directory.is_dir():
            return None
        suffix = f"_{slugify(step_key or 'doc')}.pdf"
        candidates = [
            p for p in self.directory.iterdir()
            if p.is_file() and p.name.lower().endswith('.pdf') and p.name.endswith(suffix)
        ]
        if not candidates:
            return None
        # Names start with the timestamp, so they break mtime ties chronologically
        return max(candidates, key=lambda p: (p.stat().st_mtime_ns, p.name))

    def path_for_url(self, file_url: str) -> Optional[Path]:
        """Map a ``/output/<name>`` URL (relative or absolute) to its file path."""
        path = unquote(urlparse(file_url).path)
        if not path.startswith(PUBLIC_PREFIX):
            return None
        name = Path(path).name
        return self.directory / name if name else None
