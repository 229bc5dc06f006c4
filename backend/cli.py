import click
import logging
from flask import current_app
from flask.cli import with_appcontext
from .models import db
from .services.cloud_storage import get_cloud_storage
from .services.orphan_sweep import OrphanSweepService

logger = logging.getLogger(__name__)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create the database tables."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database initialization completed successfully")
    click.echo('Initialized the database.')


@click.command('sweep-orphans')
@click.option('--grace-hours', type=float, default=None,
              help='Only delete objects older than this many hours (default: ORPHAN_GRACE_HOURS)')
@click.option('--dry-run', is_flag=True, help='List orphaned objects without deleting them')
@with_appcontext
def sweep_orphans_command(grace_hours, dry_run):
    """Delete uploaded photo blobs that were never recorded."""
    if grace_hours is None:
        grace_hours = current_app.config.get('ORPHAN_GRACE_HOURS', 24)

    service = OrphanSweepService(get_cloud_storage(), db.session, grace_hours=grace_hours)
    report = service.run(dry_run=dry_run)

    verb = 'Would delete' if dry_run else 'Deleted'
    for object_name in report.deleted:
        click.echo(f"{verb} {object_name}")
    for object_name in report.failed:
        click.echo(f"Failed to delete {object_name}")
    click.echo(
        f"Scanned {report.scanned} objects: {report.referenced} recorded, "
        f"{report.skipped_recent} within grace period, {len(report.deleted)} orphaned"
    )
