"""
Monthly Report Mailer.

Emails every verified, non-admin directory user the previous calendar
month's sales ledger entries and current account transactions as two
CSV attachments. Runs from the admin API or from
`sales_ledger/send_monthly_reports.py`.
"""

import calendar
import csv
import io
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.exceptions import DirectoryError, NotificationError, UpstreamError
from sales_ledger.app.domain.ledger.admin_gate import AdminGate
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.ledger_entry import LedgerEntry
from sales_ledger.app.services import records
from sales_ledger.app.services.directory import DirectoryClient, DirectoryEntry

logger = logging.getLogger(__name__)

REPORT_PAGE_SIZE = 50

CSV_COLUMNS = [
    "id", "owner", "type", "amount", "description",
    "created_by_admin", "created_at", "updated_at",
]


@dataclass
class MonthlyReportSummary:
    month: str
    users_scanned: int = 0
    reports_attempted: int = 0
    reports_sent: int = 0
    reports_skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def previous_month_range(as_of: datetime) -> Tuple[datetime, datetime, str]:
    """
    The UTC calendar month before the one containing `as_of`.

    Returns:
        (start, end, label): start inclusive, end exclusive, label like
        "December 2023"
    """
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    as_of = as_of.astimezone(timezone.utc)

    end = datetime(as_of.year, as_of.month, 1, tzinfo=timezone.utc)
    if as_of.month == 1:
        start = datetime(as_of.year - 1, 12, 1, tzinfo=timezone.utc)
    else:
        start = datetime(as_of.year, as_of.month - 1, 1, tzinfo=timezone.utc)

    return start, end, f"{calendar.month_name[start.month]} {start.year}"


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return str(getattr(value, "value", value))


def records_to_csv(rows: Iterable) -> str:
    """Render ledger entries or current account transactions as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow({column: _cell(getattr(row, column)) for column in CSV_COLUMNS})
    return buffer.getvalue()


def verified_email(user: DirectoryEntry) -> Optional[str]:
    """The user's email, only when the directory marks it verified."""
    email = user.attributes.get("email")
    if email and user.attributes.get("email_verified") == "true":
        return email
    return None


class MonthlyReportMailer:
    """Sends the previous month's reports to every eligible directory user."""

    def __init__(
        self,
        db: AsyncSession,
        directory: DirectoryClient,
        email_service,
        admin_gate: AdminGate,
        page_size: int = REPORT_PAGE_SIZE
    ):
        self.db = db
        self.directory = directory
        self.email_service = email_service
        self.admin_gate = admin_gate
        self.page_size = page_size

    async def run(self, as_of: datetime) -> MonthlyReportSummary:
        """
        Walk the whole directory and send one report per eligible user.

        A failure for one user is counted and the run moves on. A failed
        directory page ends the walk.

        Raises:
            NotificationError: every attempted report failed
        """
        start, end, label = previous_month_range(as_of)
        summary = MonthlyReportSummary(month=label)
        logger.info("Monthly report run started", extra={"month": label})

        page_token = None
        while True:
            try:
                users, page_token = await self.directory.list_users(self.page_size, page_token)
            except DirectoryError as e:
                logger.error("Directory listing failed during monthly reports: %s", e.message)
                summary.errors += 1
                break

            summary.users_scanned += len(users)
            for user in users:
                await self._report_for_user(user, start, end, label, summary)

            if not page_token:
                break

        logger.info("Monthly report run finished", extra=summary.to_dict())

        if summary.reports_attempted and summary.errors == summary.reports_attempted:
            raise NotificationError(
                f"All {summary.reports_attempted} monthly reports failed",
                details=summary.to_dict()
            )
        return summary

    async def _report_for_user(
        self,
        user: DirectoryEntry,
        start: datetime,
        end: datetime,
        label: str,
        summary: MonthlyReportSummary
    ) -> None:
        email = verified_email(user)
        if not email:
            logger.info("Skipping %s: no verified email", user.sub)
            summary.reports_skipped += 1
            return

        if await self._is_admin(user.sub):
            logger.info("Skipping %s: admin", user.sub)
            summary.reports_skipped += 1
            return

        summary.reports_attempted += 1
        try:
            entries = await records.fetch_for_owner_between(self.db, LedgerEntry, user.sub, start, end)
            transactions = await records.fetch_for_owner_between(
                self.db, CurrentAccountTransaction, user.sub, start, end
            )

            if not entries and not transactions:
                logger.info("No activity for %s in %s", user.sub, label)
                summary.reports_sent += 1
                return

            await self._send_report(email, label, entries, transactions)
            summary.reports_sent += 1
        except UpstreamError as e:
            logger.error("Monthly report failed for %s: %s", user.sub, e.message)
            summary.errors += 1

    async def _is_admin(self, identity: str) -> bool:
        try:
            groups = await self.directory.groups_for_user(identity)
        except DirectoryError as e:
            # unknown membership is treated as admin
            logger.warning("Group lookup failed for %s, skipping: %s", identity, e.message)
            return True
        return self.admin_gate.is_admin(groups)

    async def _send_report(self, email: str, label: str, entries: List, transactions: List) -> None:
        month_name, year = label.split(" ")
        suffix = f"{year}_{month_name.lower()}"

        await self.email_service.send(
            to_email=email,
            subject=f"Your Monthly Transaction Report - {label}",
            text_content=(
                "Hi,\n\n"
                f"Please find attached your Sales Ledger and Current Account transaction reports for {label}.\n\n"
                "If you have any questions, please contact support.\n\n"
                "Regards,\nSales Ledger"
            ),
            html_content=(
                "<p>Hi,</p>"
                f"<p>Please find attached your Sales Ledger and Current Account transaction reports for {label}.</p>"
                "<p>If you have any questions, please contact support.</p>"
                "<p>Regards,<br/>Sales Ledger</p>"
            ),
            attachments=[
                (f"sales_ledger_report_{suffix}.csv", records_to_csv(entries), "csv"),
                (f"current_account_report_{suffix}.csv", records_to_csv(transactions), "csv"),
            ],
        )
