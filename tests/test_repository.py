"""Tests for HoldingRepository."""

from decimal import Decimal

import pytest

from carteira.core.errors import DuplicateHoldingError, PersistenceError, ValidationError
from carteira.core.portfolio.repository import HoldingRepository
from carteira.core.valuation import QuoteSnapshot, ValuationStatus, reconcile_and_value
from carteira.db.models import Holding as HoldingRecord
from tests.conftest import make_quote


class TestHoldingRepository:
    """Tests for holding CRUD."""

    def test_create_and_list(self, db_session):
        """Should store a normalized holding for the default owner."""
        repo = HoldingRepository(db_session)

        created = repo.create(symbol=" petr4", quantity=10, average_price=Decimal("30.00"))
        holdings = repo.list()

        assert created.symbol == "PETR4"
        assert [h.id for h in holdings] == [created.id]
        assert holdings[0].average_price == Decimal("30")
        assert holdings[0].quantity == 10

    def test_list_is_filtered_by_owner(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create(symbol="PETR4", quantity=1, average_price=Decimal("30"))

        assert repo.list(owner_id="someone-else") == []

    def test_create_rejects_invalid(self, db_session):
        """Invalid holdings never reach the store."""
        repo = HoldingRepository(db_session)

        with pytest.raises(ValidationError):
            repo.create(symbol="PETR4", quantity=0, average_price=Decimal("30"))
        with pytest.raises(ValidationError):
            repo.create(symbol="PETR4", quantity=1, average_price=Decimal("-3"))

        assert db_session.query(HoldingRecord).count() == 0

    def test_create_rejects_duplicate_symbol(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create(symbol="PETR4", quantity=1, average_price=Decimal("30"))

        with pytest.raises(DuplicateHoldingError):
            repo.create(symbol="petr4", quantity=2, average_price=Decimal("31"))

    def test_update(self, db_session):
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="VALE3", quantity=5, average_price=Decimal("60"))

        updated = repo.update(created.id, quantity=8)

        assert updated.quantity == 8
        assert updated.average_price == Decimal("60")

    def test_update_rejects_invalid_and_keeps_record(self, db_session):
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="VALE3", quantity=5, average_price=Decimal("60"))

        with pytest.raises(ValidationError):
            repo.update(created.id, average_price=Decimal("0"))

        assert repo.get_by_id(created.id).average_price == Decimal("60")

    def test_update_missing(self, db_session):
        repo = HoldingRepository(db_session)

        with pytest.raises(PersistenceError) as exc_info:
            repo.update("missing", quantity=1)
        assert exc_info.value.not_found is True

    def test_delete(self, db_session):
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="ITSA4", quantity=100, average_price=Decimal("9.50"))

        repo.delete(created.id)

        assert repo.get_by_id(created.id) is None
        with pytest.raises(PersistenceError):
            repo.delete(created.id)

    def test_delete_checks_owner(self, db_session):
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="ITSA4", quantity=100, average_price=Decimal("9.50"))

        with pytest.raises(PersistenceError):
            repo.delete(created.id, owner_id="someone-else")
        assert repo.get_by_id(created.id) is not None

    def test_update_checks_owner(self, db_session):
        """Updating another owner's holding looks like a missing holding."""
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="ITSA4", quantity=100, average_price=Decimal("9.50"), owner_id="alice")

        with pytest.raises(PersistenceError) as exc_info:
            repo.update(created.id, quantity=999, owner_id="bob")

        assert exc_info.value.not_found
        assert repo.get_by_id(created.id).quantity == 100
        assert repo.update(created.id, quantity=120, owner_id="alice").quantity == 120

    def test_get_by_id_checks_owner(self, db_session):
        repo = HoldingRepository(db_session)
        created = repo.create(symbol="ITSA4", quantity=100, average_price=Decimal("9.50"), owner_id="alice")

        assert repo.get_by_id(created.id, owner_id="bob") is None
        assert repo.get_by_id(created.id, owner_id="alice").owner_id == "alice"

    def test_corrupt_record_is_flagged_by_valuation(self, db_session):
        """A stored row with a zero price is listed but rejected from totals."""
        repo = HoldingRepository(db_session)
        good = repo.create(symbol="PETR4", quantity=10, average_price=Decimal("30"))
        db_session.add(
            HoldingRecord(user_id=good.owner_id, symbol="BAD11", quantity=3, average_price=Decimal("0"))
        )
        db_session.flush()

        holdings = repo.list()
        snapshot = QuoteSnapshot([make_quote("PETR4", "33"), make_quote("BAD11", "10")])
        statuses = {v.symbol: v.status for v in reconcile_and_value(holdings, snapshot)}

        assert statuses == {"PETR4": ValuationStatus.MATCHED, "BAD11": ValuationStatus.REJECTED}
