#!/usr/bin/env python3
"""
Delete uploaded images that no product references.

Usage:
    python -m catalog_admin.reconcile --min-age-seconds 3600
    python -m catalog_admin.reconcile --dry-run
"""
import argparse
import logging
import sys

from catalog_admin.config import settings
from catalog_admin.db.database import session_scope
from catalog_admin.services import get_image_provider
from catalog_admin.services.asset_lifecycle import AssetLifecycleManager

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Delete uploaded images that no product references',
    )
    parser.add_argument(
        '--min-age-seconds', type=int, default=settings.orphan_min_age_seconds,
        help=f'Skip files modified more recently than this (default: {settings.orphan_min_age_seconds})'
    )
    parser.add_argument('--dry-run', action='store_true', help='List orphans without deleting them')
    args = parser.parse_args(argv)

    if args.min_age_seconds < 0:
        parser.error('--min-age-seconds must be >= 0')

    image_provider = get_image_provider()
    logger.info(f"Reconciling {settings.upload_dir} against {settings.database_url.split('@')[-1]}")

    manager = AssetLifecycleManager(image_provider, orphan_min_age_seconds=args.min_age_seconds)
    with session_scope() as db:
        if args.dry_run:
            orphans = manager.find_orphans(db)
            for name in orphans:
                logger.info(f"  orphan: {name}")
            logger.info(f"{len(orphans)} unreferenced file(s), nothing deleted (dry run)")
            return 0

        report = manager.reconcile_orphans(db)

    failed_names = {failure["name"] for failure in report.failed}
    for name in report.orphans:
        if name not in failed_names:
            logger.info(f"  removed: {name}")
    for failure in report.failed:
        logger.error(f"  failed: {failure['name']}: {failure['error']}")
    logger.info(
        f"Scanned {report.scanned}, deleted {report.deleted}, "
        f"skipped {report.skipped_recent} recent, {len(report.failed)} failed"
    )
    return 1 if report.failed else 0


if __name__ == '__main__':
    sys.exit(main())
