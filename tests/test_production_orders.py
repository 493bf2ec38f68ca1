"""Production order header: codes, duplicates and administrative edits."""

import pytest

from models import ProductionOrder
from services import anomalies, production_orders
from services.errors import Conflict, ValidationError


class TestCreateOrder:

    def test_given_code_is_stored_as_given(self, db, make_order):
        assert make_order(code="  op-001 ").code == "op-001"

    def test_duplicate_given_code(self, db, make_order):
        make_order(code="PRD250001")
        with pytest.raises(Conflict):
            make_order(code="PRD250001")

    def test_taken_generated_code_is_regenerated_once(self, db, make_order, monkeypatch):
        first = make_order()
        codes = iter([first.code, "PRD999999"])
        monkeypatch.setattr(production_orders, "next_code_yearly", lambda *a, **k: next(codes))

        order = make_order()

        assert order.code == "PRD999999"
        assert db.query(ProductionOrder).count() == 2

    def test_generated_code_taken_twice_is_a_conflict(self, db, make_order, monkeypatch):
        first = make_order()
        monkeypatch.setattr(production_orders, "next_code_yearly", lambda *a, **k: first.code)

        with pytest.raises(Conflict):
            make_order(customer_name="late writer")

        assert db.query(ProductionOrder).count() == 1

    def test_unknown_fields_are_rejected(self, db):
        with pytest.raises(ValidationError):
            production_orders.create_order(db, {"code": "AUTO", "priority": 1})


class TestHeaderEdit:

    def test_code_is_immutable(self, db, make_order):
        order = make_order()
        with pytest.raises(ValidationError):
            production_orders.update_order_header(db, order.id, {"code": "X"})

    def test_admin_state_during_issue_keeps_the_state_held_before(self, db, make_order):
        order = make_order(state="shipped")
        a = anomalies.create_anomaly(db, {
            "production_order_id": order.id,
            "service": "finishing",
            "severity": "high",
            "description": "returned by customer",
            "is_blocking": True,
        })

        production_orders.update_order_header(db, order.id, {"state": "planned"})
        db.expire_all()
        held = db.get(ProductionOrder, order.id)
        assert held.state == "issue"
        assert held.state_before_issue == "shipped"

        anomalies.update_anomaly(db, a.id, {"resolved": True})
        db.expire_all()
        released = db.get(ProductionOrder, order.id)
        assert released.state == "in_production"
        assert released.state_before_issue is None
