"""
Concurrent import of many SPL files.

Files are independent: each one gets its own persistence scope and its own
ImportResult, so they can run concurrently. Concurrency is bounded by a
semaphore (``max_concurrent_files`` by default).

Usage:
    batch = BatchImporter(SplImporter(store.scope))
    results = await batch.import_zip_archives([Path("labels.zip")])
"""

import asyncio
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from splimport.config import settings
from splimport.ingestion.importer import SplImporter
from splimport.ingestion.result import ImportResult
from splimport.ingestion.session import ProgressCallback
from splimport.logging import get_logger

logger = get_logger(__name__, component="batch")


@dataclass
class ZipImportResult:
    """Results of every SPL file found in one ZIP archive."""
    archive_name: str
    file_results: list[ImportResult] = field(default_factory=list)

    @property
    def overall_success(self) -> bool:
        return bool(self.file_results) and all(r.success for r in self.file_results)

    @property
    def total_files_processed(self) -> int:
        return len(self.file_results)

    @property
    def total_files_succeeded(self) -> int:
        return sum(1 for r in self.file_results if r.success)


def read_zip_entries(archive_path: Path) -> list[tuple[str, bytes]]:
    """Non-empty ``.xml`` entries of an archive, in archive order."""
    entries = []
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            if info.is_dir() or not info.filename.lower().endswith(".xml"):
                continue
            if info.file_size == 0:
                continue
            entries.append((info.filename, archive.read(info)))
    return entries


class BatchImporter:
    def __init__(self, importer: SplImporter, max_concurrency: int | None = None):
        self.importer = importer
        self.max_concurrency = max_concurrency or settings.max_concurrent_files

    async def _run_all(
        self,
        items: list[tuple[str, bytes]],
        report_progress: ProgressCallback | None,
    ) -> list[ImportResult]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(name: str, xml: bytes) -> ImportResult:
            async with semaphore:
                return await self.importer.import_xml(xml, name, report_progress)

        return list(await asyncio.gather(*(run_one(name, xml) for name, xml in items)))

    async def import_files(
        self,
        paths: list[Path],
        report_progress: ProgressCallback | None = None,
    ) -> list[ImportResult]:
        """Import SPL files from disk; results are in the order of ``paths``."""
        logger.info("starting_batch_import", files=len(paths), max_concurrency=self.max_concurrency)

        items = []
        unreadable: dict[int, ImportResult] = {}
        for index, path in enumerate(paths):
            try:
                items.append((path.name, path.read_bytes()))
            except OSError as e:
                logger.warning("file_read_failed", path=str(path), error=str(e))
                unreadable[index] = ImportResult(file_name=path.name).abort(
                    "Could not read file.", str(e)
                )

        imported = iter(await self._run_all(items, report_progress))
        results = [
            unreadable[index] if index in unreadable else next(imported)
            for index in range(len(paths))
        ]

        logger.info(
            "batch_import_complete",
            files=len(results),
            succeeded=sum(1 for r in results if r.success),
        )
        return results

    async def import_zip_archives(
        self,
        paths: list[Path],
        report_progress: ProgressCallback | None = None,
    ) -> list[ZipImportResult]:
        """Import every SPL file inside each archive."""
        zip_results = []

        for path in paths:
            zip_result = ZipImportResult(archive_name=path.name)
            zip_results.append(zip_result)

            try:
                entries = read_zip_entries(path)
            except (OSError, zipfile.BadZipFile) as e:
                logger.warning("archive_read_failed", archive=path.name, error=str(e))
                zip_result.file_results.append(
                    ImportResult(file_name=path.name).abort("Could not read ZIP archive.", str(e))
                )
                continue

            if not entries:
                logger.warning("archive_without_spl_files", archive=path.name)
                zip_result.file_results.append(
                    ImportResult(file_name=path.name).abort(
                        "No XML files found in ZIP archive.", f"Archive {path.name} contains no XML files."
                    )
                )
                continue

            zip_result.file_results.extend(await self._run_all(entries, report_progress))
            logger.info(
                "archive_imported",
                archive=path.name,
                files=zip_result.total_files_processed,
                succeeded=zip_result.total_files_succeeded,
            )

        return zip_results


def import_zip_archives_sync(
    importer: SplImporter,
    paths: list[Path],
    max_concurrency: int | None = None,
) -> list[ZipImportResult]:
    """Synchronous wrapper for BatchImporter.import_zip_archives."""
    return asyncio.run(BatchImporter(importer, max_concurrency).import_zip_archives(paths))
