import threading
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from database import Base
from models.product import Product
from models.stock import MovementType, StockMovement
from services import ledger
from services.alerts import LOW_STOCK, classify
from services.entity_store import products
from utils.errors import InvalidMovement, NotFound, PersistenceFailure
from tests.conftest import create_test_product, create_test_supplier


def _movements(db_session, product_id):
    return (db_session.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.id.asc())
            .all())


class TestResolveDelta:
    """Direction comes from the movement type, never from the stored sign."""

    def test_incoming_adds(self):
        assert ledger.resolve_delta("incoming", 4) == 4

    def test_outgoing_subtracts(self):
        assert ledger.resolve_delta(MovementType.OUTGOING, 4) == -4

    def test_adjustment_keeps_caller_sign(self):
        assert ledger.resolve_delta("adjustment", -3) == -3
        assert ledger.resolve_delta("adjustment", 2) == 2

    @pytest.mark.parametrize("movement_type,quantity", [
        ("incoming", 0),
        ("outgoing", -5),
        ("incoming", -1),
        ("adjustment", 0),
        ("incoming", 2.5),
        ("incoming", True),
        ("transfer", 3),
    ])
    def test_rejects_bad_requests(self, movement_type, quantity):
        with pytest.raises(InvalidMovement):
            ledger.resolve_delta(movement_type, quantity)


class TestRecordMovement:

    def test_outgoing_then_overdraw(self, db_session, admin_user):
        """10 in stock, take 7, then trying to take 10 more fails."""
        product = create_test_product(db_session, current_stock=10, min_stock=5)

        movement = ledger.record_movement(db_session, product.id, "outgoing", 7, actor_id=admin_user.id)

        assert movement.previous_stock == 10
        assert movement.new_stock == 3
        assert movement.quantity == 7
        assert movement.delta == -7
        assert movement.user_id == admin_user.id
        db_session.refresh(product)
        assert product.current_stock == 3
        assert classify(product) == LOW_STOCK

        with pytest.raises(InvalidMovement):
            ledger.record_movement(db_session, product.id, "outgoing", 10, actor_id=admin_user.id)

        db_session.refresh(product)
        assert product.current_stock == 3
        assert len(_movements(db_session, product.id)) == 1

    def test_running_total_matches_snapshots(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=5)
        requests = [
            ("incoming", 10),
            ("outgoing", 3),
            ("adjustment", -2),
            ("incoming", 1),
            ("adjustment", 4),
            ("outgoing", 15),
        ]

        running = 5
        for movement_type, quantity in requests:
            movement = ledger.record_movement(db_session, product.id, movement_type, quantity, actor_id=admin_user.id)
            assert movement.previous_stock == running
            running += ledger.resolve_delta(movement_type, quantity)
            assert movement.new_stock == running

        db_session.refresh(product)
        assert product.current_stock == running == 0
        history = ledger.product_history(db_session, product.id)
        assert [m.delta for m in history] == [10, -3, -2, 1, 4, -15]
        assert ledger.is_consistent(product, history)

    def test_stored_quantity_is_unsigned(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=8)

        movement = ledger.record_movement(db_session, product.id, "adjustment", -6, actor_id=admin_user.id,
                                          reason="Stock count", notes="Shelf B2")

        assert movement.quantity == 6
        assert movement.movement_type == "adjustment"
        assert movement.new_stock == 2
        assert movement.reason == "Stock count"
        assert movement.notes == "Shelf B2"

    def test_adjustment_below_zero_rejected(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=2)

        with pytest.raises(InvalidMovement):
            ledger.record_movement(db_session, product.id, "adjustment", -3, actor_id=admin_user.id)

        db_session.refresh(product)
        assert product.current_stock == 2
        assert _movements(db_session, product.id) == []

    def test_unknown_product(self, db_session, admin_user):
        with pytest.raises(NotFound):
            ledger.record_movement(db_session, 999, "incoming", 1, actor_id=admin_user.id)
        assert db_session.query(StockMovement).count() == 0

    def test_taking_everything_leaves_zero(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=4)

        movement = ledger.record_movement(db_session, product.id, "outgoing", 4, actor_id=admin_user.id)

        assert movement.new_stock == 0
        db_session.refresh(product)
        assert product.current_stock == 0

    def test_product_update_cannot_touch_stock(self, db_session):
        product = create_test_product(db_session, current_stock=4)

        updated = products.update(db_session, product.id, {"name": "Renamed", "current_stock": 100})

        assert updated.name == "Renamed"
        assert updated.current_stock == 4


class TestDelivery:

    def test_books_every_line(self, db_session, admin_user):
        supplier = create_test_supplier(db_session, name="Contoso")
        first = create_test_product(db_session, sku="A-1", current_stock=0)
        second = create_test_product(db_session, sku="B-2", current_stock=3)
        items = [
            SimpleNamespace(product_id=first.id, quantity=5),
            SimpleNamespace(product_id=second.id, quantity=2),
            SimpleNamespace(product_id=first.id, quantity=1),
        ]

        movements = ledger.receive_delivery(db_session, items, actor_id=admin_user.id, supplier_id=supplier.id)

        assert [(m.previous_stock, m.new_stock) for m in movements] == [(0, 5), (3, 5), (5, 6)]
        assert all(m.movement_type == "incoming" for m in movements)
        assert movements[0].notes == "Supplier: Contoso"
        db_session.refresh(first)
        db_session.refresh(second)
        assert first.current_stock == 6
        assert second.current_stock == 5

    def test_bad_line_rolls_back_whole_delivery(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=1)
        items = [
            SimpleNamespace(product_id=product.id, quantity=5),
            SimpleNamespace(product_id=12345, quantity=1),
        ]

        with pytest.raises(NotFound):
            ledger.receive_delivery(db_session, items, actor_id=admin_user.id)

        db_session.refresh(product)
        assert product.current_stock == 1
        assert db_session.query(StockMovement).count() == 0

    def test_rejects_empty_and_non_positive(self, db_session, admin_user):
        product = create_test_product(db_session)

        with pytest.raises(InvalidMovement):
            ledger.receive_delivery(db_session, [], actor_id=admin_user.id)
        with pytest.raises(InvalidMovement):
            ledger.receive_delivery(db_session, [SimpleNamespace(product_id=product.id, quantity=0)],
                                    actor_id=admin_user.id)


class TestReadSide:

    def test_list_is_newest_first_and_filterable(self, db_session, admin_user):
        product = create_test_product(db_session, current_stock=10)
        other = create_test_product(db_session, sku="OTHER", current_stock=10)
        ledger.record_movement(db_session, product.id, "incoming", 1, actor_id=admin_user.id)
        ledger.record_movement(db_session, other.id, "outgoing", 2, actor_id=admin_user.id)
        ledger.record_movement(db_session, product.id, "outgoing", 3, actor_id=admin_user.id)

        items, total = ledger.list_movements(db_session)
        assert total == 3
        assert [m.quantity for m in items] == [3, 2, 1]

        items, total = ledger.list_movements(db_session, product_id=product.id, movement_type="outgoing")
        assert total == 1
        assert items[0].quantity == 3

    def test_describe_tolerates_deleted_product_and_user(self, db_session, admin_user, regular_user):
        product = create_test_product(db_session, current_stock=10)
        ledger.record_movement(db_session, product.id, "outgoing", 1, actor_id=regular_user.id)
        db_session.delete(db_session.get(Product, product.id))
        db_session.delete(regular_user)
        db_session.commit()

        rows = ledger.describe(db_session, db_session.query(StockMovement).all())

        assert rows[0]["product_name"] == "Unknown Product"
        assert rows[0]["product_sku"] == "N/A"
        assert rows[0]["user_email"] == "Unknown User"

    def test_history_of_unknown_product(self, db_session):
        with pytest.raises(NotFound):
            ledger.product_history(db_session, 42)

    def test_broken_chain_is_reported(self):
        product = SimpleNamespace(current_stock=5)
        movements = [
            SimpleNamespace(previous_stock=0, new_stock=5),
            SimpleNamespace(previous_stock=4, new_stock=5),
        ]
        assert not ledger.is_consistent(product, movements)


class TestSerialization:

    def test_lock_entry_is_dropped_after_release(self):
        with ledger.product_lock(4242):
            assert 4242 in ledger._product_locks
        assert 4242 not in ledger._product_locks

    def test_parallel_outgoing_movements_never_share_a_snapshot(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'ledger.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        SessionFactory = sessionmaker(bind=engine, autoflush=False)

        setup = SessionFactory()
        product_id = create_test_product(setup, current_stock=50).id
        setup.close()

        errors = []

        def take_ten():
            session = SessionFactory()
            try:
                for _ in range(10):
                    try:
                        ledger.record_movement(session, product_id, "outgoing", 1, actor_id=None)
                    except InvalidMovement:
                        pass
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=take_ten) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        check = SessionFactory()
        try:
            product = check.get(Product, product_id)
            history = ledger.product_history(check, product_id)

            assert errors == []
            assert len(history) == 50
            assert product.current_stock == 50 - len(history) == 0
            assert ledger.is_consistent(product, history)
            assert product_id not in ledger._product_locks
        finally:
            check.close()
            engine.dispose()

    def test_storage_failure_leaves_nothing_behind(self, db_session, admin_user, monkeypatch):
        product = create_test_product(db_session, current_stock=10)

        def broken_commit():
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(db_session, "commit", broken_commit)
        with pytest.raises(PersistenceFailure):
            ledger.record_movement(db_session, product.id, "outgoing", 4, actor_id=admin_user.id)
        with pytest.raises(PersistenceFailure):
            ledger.receive_delivery(db_session, [SimpleNamespace(product_id=product.id, quantity=3)],
                                    actor_id=admin_user.id)
        monkeypatch.undo()

        db_session.refresh(product)
        assert product.current_stock == 10
        assert db_session.query(StockMovement).count() == 0
