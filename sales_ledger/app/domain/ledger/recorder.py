"""
Transaction Recorder.

Write side of the ledger: validates an action, stamps it with a fresh
time-sortable identifier and UTC timestamps, and persists it with a
single conditional insert. A collision on the identifier is rejected;
an existing record is never overwritten.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from sales_ledger.app.core.exceptions import ConflictError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Numeric(14, 2): 12 integer digits
MAX_AMOUNT = Decimal(10) ** 12


def new_record_id() -> str:
    return str(ULID())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_amount(amount, allow_zero: bool = False) -> Decimal:
    """
    Coerce `amount` to a finite Decimal in whole pence that is > 0 (or
    >= 0 with allow_zero) and fits a Numeric(14, 2) column.

    The result is quantized to 0.01, so it equals what the store keeps.
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationError("A valid amount is required", details={"amount": amount})
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number", details={"amount": str(amount)})

    if not value.is_finite():
        raise ValidationError("Amount must be a finite number", details={"amount": str(amount)})
    if value < 0 or (value == 0 and not allow_zero):
        bound = "zero or positive" if allow_zero else "positive"
        raise ValidationError(f"Amount must be {bound}", details={"amount": str(amount)})
    if value >= MAX_AMOUNT:
        raise ValidationError(f"Amount must be below {MAX_AMOUNT}", details={"amount": str(amount)})

    quantized = value.quantize(CENT)
    if quantized != value:
        raise ValidationError("Amount must have at most 2 decimal places", details={"amount": str(amount)})
    return quantized


def validate_identity(identity, field: str = "owner") -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError(f"A non-empty {field} identity is required", details={field: identity})
    return identity


class TransactionRecorder:
    """
    Persists new immutable records, one durable write per call.

    Args:
        db: Database session
        id_factory: Generates record identifiers (ULID by default)
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        db: AsyncSession,
        id_factory: Callable[[], str] = new_record_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.id_factory = id_factory
        self.clock = clock

    async def record(
        self,
        model,
        owner: str,
        type,
        amount,
        description: Optional[str] = None,
        acting_identity: Optional[str] = None,
    ):
        """
        Validate and persist a new ledger or current account record.

        Args:
            model: LedgerEntry or CurrentAccountTransaction
            owner: Customer identity the record belongs to
            type: Member (or value) of the model's type enum
            amount: Positive magnitude
            description: Optional free text
            acting_identity: Caller identity; stored as created_by_admin when it differs from owner

        Returns:
            The persisted record

        Raises:
            ValidationError: bad input, nothing written
            ConflictError: identifier already taken, nothing written
            PersistenceError: store unavailable
        """
        owner = validate_identity(owner)
        amount = validate_amount(amount)
        enum_cls = model.__table__.c.type.type.enum_class
        try:
            record_type = enum_cls(type)
        except ValueError:
            raise ValidationError(
                f"Invalid {model.__name__} type",
                details={"type": str(type), "allowed": [member.value for member in enum_cls]}
            )

        now = self.clock()
        values = {
            "id": self.id_factory(),
            "owner": owner,
            "type": record_type,
            "amount": amount,
            "description": description,
            "created_by_admin": acting_identity if acting_identity and acting_identity != owner else None,
            "created_at": now,
            "updated_at": now,
        }
        await self.insert_once(model, values)

        logger.info(
            "Record created",
            extra={
                "record_kind": model.__name__,
                "record_id": values["id"],
                "owner": owner,
                "type": record_type.value,
                "created_by_admin": values["created_by_admin"],
            }
        )
        return model(**values)

    async def insert_once(self, model, values: dict) -> None:
        """
        Insert `values` as a new row of `model`, failing if its key exists.

        A plain INSERT on the primary key is the conditional write: the
        store rejects a duplicate key instead of replacing the row.
        """
        try:
            await self.db.execute(insert(model).values(**values))
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(model.__name__, values["id"])
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to persist %s %s: %s", model.__name__, values["id"], e)
            raise PersistenceError(
                f"Failed to persist {model.__name__}",
                details={"id": values["id"], "reason": type(e).__name__}
            )
