"""
Monthly report script.

Emails every verified customer the previous calendar month's ledger and
current account CSVs. Meant to run from a scheduler on the first day of
each month.
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sales_ledger.app.core.config import settings
from sales_ledger.app.core.exceptions import NotificationError
from sales_ledger.app.db.session import AsyncSessionLocal
from sales_ledger.app.domain.ledger.admin_gate import AdminGate
from sales_ledger.app.services.directory import SqlDirectory
from sales_ledger.app.services.email_service import get_email_service
from sales_ledger.app.services.monthly_report import MonthlyReportMailer
import sales_ledger.app.main  # noqa: F401  registers every model with Base


async def send_monthly_reports() -> int:
    async with AsyncSessionLocal() as db:
        mailer = MonthlyReportMailer(
            db,
            SqlDirectory(db),
            get_email_service(settings),
            AdminGate(settings.admin_group_name),
        )
        try:
            summary = await mailer.run(datetime.now(timezone.utc))
        except NotificationError as e:
            print(f"Monthly reports failed: {e.message}")
            return 1

    print(f"Monthly reports for {summary.month}:")
    print(f"  - users scanned: {summary.users_scanned}")
    print(f"  - attempted: {summary.reports_attempted}")
    print(f"  - sent: {summary.reports_sent}")
    print(f"  - skipped: {summary.reports_skipped}")
    print(f"  - errors: {summary.errors}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(send_monthly_reports()))
