"""Reconciliation of uploaded photo blobs that were never recorded.

A photo upload is two steps: the blob goes to object storage, then the
metadata is recorded. When the second step fails the blob stays behind with
no Photo row pointing at it. This service lists the container, matches every
object against Photo.object_name and deletes the unreferenced ones once they
are older than a grace period, so that in-flight submissions are left alone.
"""

import logging
import time
from shared.models import Photo
from shared.schemas import OrphanSweepReport
from shared.utils import parse_object_name


logger = logging.getLogger(__name__)


class OrphanSweepService:
    """Detect and delete storage objects with no matching photo record."""

    def __init__(self, storage, session, grace_hours=24):
        """Initialize orphan sweep.

        Args:
            storage: CloudStorageService (or compatible) instance
            session: SQLAlchemy session used to read photo records
            grace_hours: Minimum object age before it can be deleted
        """
        self.storage = storage
        self.session = session
        self.grace_hours = grace_hours

    def _referenced_names(self):
        rows = self.session.query(Photo.object_name).all()
        return {row[0] for row in rows}

    def run(self, dry_run=False, now_ms=None):
        """Sweep the container once.

        Args:
            dry_run: Report what would be deleted without deleting
            now_ms: Current time in epoch milliseconds (defaults to wall clock)

        Returns:
            OrphanSweepReport
        """
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        cutoff_ms = now_ms - int(self.grace_hours * 3600 * 1000)
        referenced = self._referenced_names()
        report = OrphanSweepReport()

        logger.info(f"Starting orphan sweep (grace={self.grace_hours}h, dry_run={dry_run}, records={len(referenced)})")

        for object_name in self.storage.iter_object_names():
            report.scanned += 1
            if object_name in referenced:
                report.referenced += 1
                continue

            parsed = parse_object_name(object_name)
            if parsed is None:
                # Not written by the photo pipeline
                report.skipped_unrecognized += 1
                continue
            if parsed['timestamp_ms'] > cutoff_ms:
                report.skipped_recent += 1
                continue

            if dry_run:
                report.deleted.append(object_name)
                continue

            if self.storage.delete_object(object_name):
                report.deleted.append(object_name)
            else:
                report.failed.append(object_name)

        if report.deleted:
            logger.warning(f"Orphan sweep {'found' if dry_run else 'deleted'} {len(report.deleted)} unrecorded objects")
        logger.info(f"Orphan sweep completed: {report.model_dump()}")
        return report
