"""
Ledger tests: movement recording, stock guards and replay on delete.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from medstock.models import InventoryMovement, Item
from medstock.services import ledger_service
from medstock.services.ledger_service import apply_movement, replay_movements
from medstock.time_utils import utcnow
from medstock.validation import ValidationError, NotFoundError, InsufficientStockError


def _fact(quantity, type_code="IN", effect=1, id=1):
    return SimpleNamespace(id=id, item_id=1, quantity=quantity, type_code=type_code, effect=effect)


class TestApplyAndReplay:
    """Pure folding rules."""

    @pytest.mark.parametrize("previous,quantity,code,effect,expected", [
        (0, 10, "IN", 1, 10),
        (10, 3, "OUT", -1, 7),
        (7, 2, "RETURN", 1, 9),
        (9, 4, "DAMAGED", -1, 5),
        (5, 8, "TRANSFER", 0, 5),
        (5, 42, "ADJUSTMENT", 0, 42),
        (50, 1, "ADJUSTMENT", 0, 1),
    ])
    def test_apply_movement(self, previous, quantity, code, effect, expected):
        assert apply_movement(previous, quantity, code, effect) == expected

    def test_replay_folds_in_order(self):
        facts = [_fact(10), _fact(3, "OUT", -1, id=2), _fact(5, id=3)]
        assert replay_movements(facts, 0) == 12

    def test_replay_adjustment_resets_running_total(self):
        facts = [_fact(10), _fact(4, "ADJUSTMENT", 0, id=2), _fact(1, "OUT", -1, id=3)]
        assert replay_movements(facts, 0) == 3

    def test_replay_empty_keeps_baseline(self):
        assert replay_movements([], 17) == 17

    def test_replay_going_negative_raises(self):
        facts = [_fact(5), _fact(7, "OUT", -1, id=2)]
        with pytest.raises(InsufficientStockError) as exc_info:
            replay_movements(facts, 0)
        assert exc_info.value.available == 5
        assert exc_info.value.requested == 7


class TestAddMovement:

    def test_in_out_updates_quantity_and_snapshots(self, db_session, item, add):
        m1, _ = add("IN", item, 10)
        m2, updated = add("OUT", item, 3)

        assert (m1.previous_qty, m1.new_qty) == (0, 10)
        assert (m2.previous_qty, m2.new_qty) == (10, 7)
        assert updated.quantity == 7

    def test_adjustment_sets_quantity(self, db_session, item, add):
        add("IN", item, 10)
        movement, updated = add("ADJUSTMENT", item, 4)

        assert movement.previous_qty == 10
        assert movement.new_qty == 4
        assert updated.quantity == 4

    def test_transfer_does_not_change_quantity(self, db_session, item, add):
        add("IN", item, 6)
        _, updated = add("TRANSFER", item, 2, notes="to ward 3")
        assert updated.quantity == 6

    def test_insufficient_stock_writes_nothing(self, db_session, item, add):
        add("IN", item, 2)

        with pytest.raises(InsufficientStockError) as exc_info:
            add("OUT", item, 5)

        assert exc_info.value.available == 2
        assert exc_info.value.requested == 5
        assert db_session.query(InventoryMovement).filter_by(item_id=item.id).count() == 1
        assert db_session.get(Item, item.id).quantity == 2

    @pytest.mark.parametrize("bad_quantity", [0, -3, True, 2.5, "1.0", "1e3", "abc", None])
    def test_invalid_quantity_rejected(self, db_session, item, add, bad_quantity):
        with pytest.raises(ValidationError):
            add("IN", item, bad_quantity)
        assert db_session.query(InventoryMovement).count() == 0

    def test_numeric_string_quantity_accepted(self, db_session, item, add):
        _, updated = add("IN", item, "12")
        assert updated.quantity == 12

    def test_missing_item(self, db_session, movement_types, admin_user):
        with pytest.raises(NotFoundError):
            ledger_service.add_movement(
                item_id=9999,
                movement_type_id=movement_types["IN"].id,
                quantity=1,
                user_id=admin_user.id,
            )

    def test_missing_movement_type(self, db_session, item, admin_user, seed):
        with pytest.raises(NotFoundError):
            ledger_service.add_movement(
                item_id=item.id,
                movement_type_id=9999,
                quantity=1,
                user_id=admin_user.id,
            )

    def test_missing_user(self, db_session, item, movement_types):
        with pytest.raises(NotFoundError):
            ledger_service.add_movement(
                item_id=item.id,
                movement_type_id=movement_types["IN"].id,
                quantity=1,
                user_id=9999,
            )

    def test_inactive_movement_type_rejected(self, db_session, item, add, movement_types):
        movement_types["RETURN"].is_active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            add("RETURN", item, 1)
        assert db_session.query(InventoryMovement).count() == 0

    def test_movement_date_is_stamped_by_server(self, db_session, item, add):
        before = utcnow()
        movement, _ = add("IN", item, 1)
        assert before <= movement.movement_date <= utcnow()

    def test_movement_date_cannot_be_supplied(self, db_session, item, add):
        with pytest.raises(TypeError):
            add("IN", item, 1, movement_date=datetime(2001, 1, 1))
        assert db_session.query(InventoryMovement).count() == 0

    def test_unit_override(self, db_session, item, add):
        _, updated = add("IN", item, 3, unit="box")
        assert updated.unit == "box"

    def test_rejected_movement_keeps_previous_unit(self, db_session, item, add):
        add("IN", item, 2)

        with pytest.raises(InsufficientStockError):
            add("OUT", item, 5, unit="box")

        db_session.expire_all()
        assert db_session.get(Item, item.id).unit == "piece"

    def test_overlong_unit_is_ignored(self, db_session, item, add):
        _, updated = add("IN", item, 3, unit="x" * (Item.UNIT_MAX_LENGTH + 1))
        assert updated.unit == "piece"
        assert updated.quantity == 3

    def test_blank_reference_and_notes_stored_as_null(self, db_session, item, add):
        movement, _ = add("IN", item, 1, reference_no="  ", notes="")
        assert movement.reference_no is None
        assert movement.notes is None


class TestDeleteMovement:

    def test_delete_replays_remaining_history(self, db_session, item, add):
        add("IN", item, 10)
        m2, _ = add("OUT", item, 3)
        _, updated = add("IN", item, 5)
        assert updated.quantity == 12

        result = ledger_service.delete_movement(m2.id)

        assert result.quantity == 15
        assert db_session.get(InventoryMovement, m2.id) is None

    def test_delete_matches_history_without_the_movement(self, db_session, item, add):
        add("IN", item, 10)
        m_out, _ = add("OUT", item, 8)
        _, updated = add("IN", item, 5)
        assert updated.quantity == 7

        result = ledger_service.delete_movement(m_out.id)

        # Same as recording IN 10 then IN 5
        assert result.quantity == 15

    def test_delete_first_movement_uses_next_previous_qty(self, db_session, item, add):
        m1, _ = add("IN", item, 10)
        add("IN", item, 5)

        result = ledger_service.delete_movement(m1.id)

        # Baseline is the remaining movement's stored previous_qty (10)
        assert result.quantity == 15

    def test_delete_last_remaining_keeps_stored_quantity(self, db_session, item, add):
        m1, _ = add("IN", item, 8)

        result = ledger_service.delete_movement(m1.id)

        assert result.quantity == 8
        assert db_session.query(InventoryMovement).count() == 0

    def test_delete_that_would_go_negative_is_rolled_back(self, db_session, item, add):
        add("IN", item, 5)
        m2, _ = add("IN", item, 3)
        add("OUT", item, 7)

        with pytest.raises(InsufficientStockError):
            ledger_service.delete_movement(m2.id)

        assert db_session.get(InventoryMovement, m2.id) is not None
        assert db_session.get(Item, item.id).quantity == 1

    def test_delete_missing_movement(self, db_session, seed):
        with pytest.raises(NotFoundError):
            ledger_service.delete_movement(424242)


class TestListMovements:

    def test_newest_first_with_snapshots(self, db_session, item, add):
        add("IN", item, 10)
        add("OUT", item, 4)

        rows = ledger_service.list_movements(item_id=item.id)

        assert [(m.previous_qty, m.new_qty) for m in rows] == [(10, 6), (0, 10)]
        payload = rows[0].to_dict()
        assert payload["type_code"] == "OUT"
        assert payload["item_name"] == item.name
        assert payload["user_full_name"] == "Admin"

    def test_filter_by_type(self, db_session, item, add, movement_types):
        add("IN", item, 10)
        add("OUT", item, 1)
        add("OUT", item, 1)

        rows = ledger_service.list_movements(movement_type_id=movement_types["OUT"].id)
        assert len(rows) == 2

    def test_limit_is_clamped(self, app, db_session, item, add):
        for _ in range(4):
            add("IN", item, 1)

        assert len(ledger_service.list_movements(limit=2)) == 2
        assert len(ledger_service.list_movements(limit=0)) == 1

        original = app.config["MOVEMENT_LIST_MAX_LIMIT"]
        app.config["MOVEMENT_LIST_MAX_LIMIT"] = 3
        try:
            assert len(ledger_service.list_movements(limit=100)) == 3
        finally:
            app.config["MOVEMENT_LIST_MAX_LIMIT"] = original

    def test_bad_limit(self, db_session, seed):
        with pytest.raises(ValidationError):
            ledger_service.list_movements(limit="many")


class TestMovementTypes:

    def test_seeded_once(self, db_session, seed):
        assert ledger_service.ensure_movement_types() == 0
        codes = {mt.type_code for mt in ledger_service.list_movement_types()}
        assert codes == {"IN", "OUT", "RETURN", "DAMAGED", "ADJUSTMENT", "TRANSFER"}

    def test_inactive_hidden_by_default(self, db_session, movement_types):
        movement_types["DAMAGED"].is_active = False
        db_session.commit()

        active = {mt.type_code for mt in ledger_service.list_movement_types()}
        everything = {mt.type_code for mt in ledger_service.list_movement_types(include_inactive=True)}
        assert "DAMAGED" not in active
        assert "DAMAGED" in everything
