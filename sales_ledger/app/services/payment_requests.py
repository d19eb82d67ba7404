"""
Payment Request Service.

Self-service requests email the configured recipient first and then
record a PAYMENT_REQUEST on the caller's current account. Admin requests
on behalf of a customer only record the transaction.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.exceptions import ConflictError, NotificationError, PersistenceError
from sales_ledger.app.domain.ledger.recorder import TransactionRecorder, validate_amount, validate_identity
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.enums import CurrentAccountTransactionType
from sales_ledger.app.services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass
class PaymentRequestOutcome:
    message: str
    transaction_id: Optional[str] = None
    warning: Optional[str] = None


def format_gbp(amount) -> str:
    return f"£{amount:,.2f}"


class PaymentRequestService:

    def __init__(
        self,
        db: AsyncSession,
        email_service: EmailService,
        recipient: str,
        recorder: Optional[TransactionRecorder] = None
    ):
        self.db = db
        self.email_service = email_service
        self.recipient = recipient
        self.recorder = recorder or TransactionRecorder(db)

    async def send_payment_request(self, current_user: dict, amount) -> PaymentRequestOutcome:
        """
        Email a payment request for the caller, then record it.

        If the email fails nothing is recorded and NotificationError is
        raised. If the email went out but the record could not be
        written, the outcome carries a warning and no transaction id.
        """
        amount = validate_amount(amount)
        owner = validate_identity(current_user.get("sub"))
        if not self.recipient:
            logger.error("Payment request recipient is not configured")
            raise NotificationError("Payment request recipient is not configured")

        requester = current_user.get("email") or current_user.get("username") or owner
        subject = f"Payment Request - {format_gbp(amount)}"
        body = (
            f"A payment of {format_gbp(amount)} has been requested by {requester}.\n\n"
            f"Account: {owner}\n"
        )

        await self.email_service.send(self.recipient, subject, body)

        try:
            transaction = await self.recorder.record(
                CurrentAccountTransaction,
                owner=owner,
                type=CurrentAccountTransactionType.PAYMENT_REQUEST,
                amount=amount,
                description=f"Payment Request: {subject}",
                acting_identity=owner,
            )
        except (PersistenceError, ConflictError) as e:
            logger.error(
                "Payment request emailed but not recorded",
                extra={"owner": owner, "amount": str(amount), "reason": e.message}
            )
            return PaymentRequestOutcome(
                message=(
                    f"Payment request for {format_gbp(amount)} to {self.recipient} was emailed, "
                    "but the transaction could not be recorded."
                ),
                warning=f"Email sent but transaction not recorded: {e.message}",
            )

        return PaymentRequestOutcome(
            message=(
                f"Payment request for {format_gbp(amount)} to {self.recipient} processed. "
                f"Email sent and transaction recorded (ID: {transaction.id})."
            ),
            transaction_id=transaction.id,
        )

    async def request_payment_for_user(
        self,
        admin: dict,
        target_owner: str,
        amount,
        description: Optional[str] = None
    ) -> PaymentRequestOutcome:
        """Record a PAYMENT_REQUEST for `target_owner` on an admin's behalf."""
        transaction = await self.recorder.record(
            CurrentAccountTransaction,
            owner=target_owner,
            type=CurrentAccountTransactionType.PAYMENT_REQUEST,
            amount=amount,
            description=description or f"Payment Request by admin for {target_owner}",
            acting_identity=admin["sub"],
        )

        logger.info(
            "Admin payment request recorded",
            extra={"admin": admin["sub"], "owner": target_owner, "transaction_id": transaction.id}
        )

        return PaymentRequestOutcome(
            message=(
                f"Payment request for {format_gbp(transaction.amount)} recorded for {target_owner} "
                f"(ID: {transaction.id})."
            ),
            transaction_id=transaction.id,
        )
