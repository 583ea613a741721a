"""Portfolio repository for CRUD operations."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from carteira.config import get_settings
from carteira.core.errors import DuplicateHoldingError, PersistenceError, ValidationError
from carteira.core.valuation.models import Holding, build_holding, normalize_symbol
from carteira.db.models import Holding as HoldingRecord, User

logger = logging.getLogger(__name__)
settings = get_settings()


def to_holding(record: HoldingRecord) -> Holding:
    """Convert a stored record into an engine Holding.

    A record that no longer satisfies the holding constraints (edited outside
    the app, for instance) is passed through unvalidated so valuation flags it
    as rejected instead of hiding it.
    """
    fields = dict(
        id=record.id,
        owner_id=record.user_id,
        symbol=record.symbol,
        quantity=record.quantity,
        average_price=record.average_price,
        created_at=record.created_at,
    )
    try:
        return build_holding(**fields)
    except ValidationError as e:
        logger.warning(f"Stored holding {record.id} is invalid: {e}")
        return Holding.model_construct(**fields)


class HoldingRepository:
    """Repository for Holding CRUD operations."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def _get_or_create_default_user(self) -> User:
        """Get or create the default user for single-user mode."""
        user = self.db.query(User).filter_by(email=settings.default_user_email).first()
        if not user:
            user = User(email=settings.default_user_email)
            self.db.add(user)
            self.db.flush()  # Get the ID without committing
        return user

    def _resolve_owner(self, owner_id: Optional[str]) -> str:
        if owner_id is None:
            return self._get_or_create_default_user().id
        return owner_id

    def _get_record(self, holding_id: str, owner_id: Optional[str] = None) -> Optional[HoldingRecord]:
        """Fetch a record, hiding it when owner_id is given and does not match."""
        record = self.db.query(HoldingRecord).filter_by(id=holding_id).first()
        if record is not None and owner_id is not None and record.user_id != owner_id:
            return None
        return record

    def _flush(self, action: str) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not {action}: {e}") from e

    def list(self, owner_id: Optional[str] = None) -> List[Holding]:
        """Get all holdings for an owner, newest first.

        Args:
            owner_id: User ID. If None, uses default user.
        """
        owner_id = self._resolve_owner(owner_id)
        records = (
            self.db.query(HoldingRecord)
            .filter_by(user_id=owner_id)
            .order_by(HoldingRecord.created_at.desc())
            .all()
        )
        return [to_holding(r) for r in records]

    def get_by_id(self, holding_id: str, owner_id: Optional[str] = None) -> Optional[Holding]:
        """Get a holding by ID, or None if missing or owned by someone else."""
        record = self._get_record(holding_id, owner_id)
        return to_holding(record) if record else None

    def get_by_symbol(self, symbol: str, owner_id: Optional[str] = None) -> Optional[Holding]:
        """Get an owner's holding by symbol."""
        owner_id = self._resolve_owner(owner_id)
        record = (
            self.db.query(HoldingRecord)
            .filter_by(user_id=owner_id, symbol=normalize_symbol(symbol))
            .first()
        )
        return to_holding(record) if record else None

    def create(
        self,
        symbol: str,
        quantity: int,
        average_price: Decimal,
        owner_id: Optional[str] = None,
    ) -> Holding:
        """Create a new holding.

        Args:
            symbol: Ticker symbol (normalized before storing)
            quantity: Number of units, > 0
            average_price: Average price per unit, > 0
            owner_id: User ID. If None, uses default user.

        Returns:
            Created holding

        Raises:
            ValidationError: If a field is invalid or the symbol is already held
            PersistenceError: If the store rejected the insert
        """
        owner_id = self._resolve_owner(owner_id)
        # Validate before touching the session
        candidate = build_holding(
            id="pending",
            owner_id=owner_id,
            symbol=symbol,
            quantity=quantity,
            average_price=average_price,
        )

        if self.get_by_symbol(candidate.symbol, owner_id) is not None:
            raise DuplicateHoldingError(candidate.symbol)

        record = HoldingRecord(
            user_id=owner_id,
            symbol=candidate.symbol,
            quantity=candidate.quantity,
            average_price=candidate.average_price,
        )
        self.db.add(record)
        self._flush(f"create holding {candidate.symbol}")
        logger.info(f"Created holding {candidate.symbol} x{candidate.quantity}")
        return to_holding(record)

    def update(
        self,
        holding_id: str,
        quantity: Optional[int] = None,
        average_price: Optional[Decimal] = None,
        owner_id: Optional[str] = None,
    ) -> Holding:
        """Update a holding.

        Args:
            holding_id: Holding ID
            quantity: New quantity, if changing
            average_price: New average price, if changing
            owner_id: Optional user ID for ownership verification

        Raises:
            ValidationError: If quantity or average_price is not positive
            PersistenceError: If not found, owned by someone else, or the write failed
        """
        record = self._get_record(holding_id, owner_id)
        if not record:
            raise PersistenceError(f"Holding {holding_id} not found", not_found=True)

        # Validate the merged record as a whole
        merged = build_holding(
            id=record.id,
            owner_id=record.user_id,
            symbol=record.symbol,
            quantity=record.quantity if quantity is None else quantity,
            average_price=record.average_price if average_price is None else average_price,
        )

        record.quantity = merged.quantity
        record.average_price = merged.average_price
        self._flush(f"update holding {holding_id}")
        return to_holding(record)

    def delete(self, holding_id: str, owner_id: Optional[str] = None) -> None:
        """Delete a holding.

        Args:
            holding_id: Holding ID
            owner_id: Optional user ID for ownership verification

        Raises:
            PersistenceError: If not found or owned by someone else
        """
        record = self._get_record(holding_id, owner_id)
        if not record:
            raise PersistenceError(f"Holding {holding_id} not found", not_found=True)

        self.db.delete(record)
        self._flush(f"delete holding {holding_id}")
