"""Sequential, fail-fast extraction over several uploaded files."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import mimetypes
from pathlib import Path
from typing import Protocol

from splitpay.adapters.extraction.gemini import DEFAULT_PROMPT
from splitpay.adapters.extraction.logger import ExtractionLogger
from splitpay.errors import UnsupportedFileError
from splitpay.orders.entities import ExtractedRecord


class RecordExtractor(Protocol):
    def extract(
        self, image: bytes, mime_type: str, prompt: str = DEFAULT_PROMPT
    ) -> list[ExtractedRecord]: ...


def image_mime_type(path: Path) -> str:
    """Mime type guessed from the file name; only images are accepted.

    Raises:
        UnsupportedFileError: If the file is not an image
    """
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None or not mime_type.startswith("image/"):
        raise UnsupportedFileError(f"File {path.name} is not an image.")
    return mime_type


def extract_files(
    paths: Iterable[Path],
    extractor: RecordExtractor,
    *,
    prompt: str = DEFAULT_PROMPT,
    on_file: Callable[[Path, list[ExtractedRecord]], None] | None = None,
    extraction_logger: ExtractionLogger | None = None,
) -> list[ExtractedRecord]:
    """Extract records from each file in order.

    The first failure aborts the rest of the batch. ``on_file`` runs after
    each successful file, so anything it stored for earlier files stays
    stored when a later file fails.

    Raises:
        UnsupportedFileError: A file is not an image
        ExtractionError: The extractor failed on a file
    """
    log = extraction_logger or ExtractionLogger()
    files = list(paths)
    log.batch_started(len(files))

    records: list[ExtractedRecord] = []
    for processed, path in enumerate(files):
        try:
            mime_type = image_mime_type(path)
            file_records = extractor.extract(path.read_bytes(), mime_type, prompt)
        except Exception as exc:
            log.batch_aborted(path, processed, exc)
            raise
        log.file_extracted(path, len(file_records))
        if on_file is not None:
            on_file(path, file_records)
        records.extend(file_records)
    return records
