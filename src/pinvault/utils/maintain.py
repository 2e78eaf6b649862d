import logging

from pinvault.utils.core import FileManager
from pinvault.utils.dataModels import IntegrityReport

logger = logging.getLogger(__name__)


def check_integrity(manager: FileManager) -> IntegrityReport:
    """Compare index ids with stored content blobs."""
    indexed = set(manager.index_store.read_index(strict=True).files)
    stored = set(manager.content_store.ids())
    return IntegrityReport(
        orphan_content=sorted(stored - indexed),
        missing_content=sorted(indexed - stored),
    )


def repair(manager: FileManager) -> IntegrityReport:
    """Bring the stores back into lockstep.

    Orphan blobs are removed; index entries without content are dropped.
    Returns the report that was acted on.
    """
    report = check_integrity(manager)
    if report.ok:
        return report

    for fid in report.orphan_content:
        manager.content_store.remove_content(fid)
        logger.warning("Removed orphan content %s", fid)

    if report.missing_content:
        index = manager.index_store.read_index(strict=True)
        for fid in report.missing_content:
            index.files.pop(fid, None)
            logger.warning("Dropped index entry %s with no content", fid)
        manager.index_store.write_index(index)
    return report
