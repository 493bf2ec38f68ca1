"""Line CRUD, administrative overrides and line sizes."""

import pytest

from models import ProductionAnomaly, ProductionOrder, ProductionOrderLine
from services import anomalies, production_lines
from services.errors import NotFound, ValidationError
from services.stage_machine import advance_line


class TestCreateLine:

    def test_codes_follow_the_order_code(self, db, make_order, make_line):
        order = make_order(code="PRD250100")
        lines = [make_line(order) for _ in range(3)]
        assert [l.code for l in lines] == ["PRD250100.1", "PRD250100.2", "PRD250100.3"]

    def test_qty_to_produce_defaults_to_ordered(self, db, make_order, make_line):
        order = make_order()
        assert make_line(order, qty_ordered=7).qty_to_produce == 7
        assert make_line(order, qty_ordered=7, qty_to_produce=9).qty_to_produce == 9

    def test_issue_cannot_be_set_directly(self, db, make_order, make_line):
        order = make_order()
        with pytest.raises(ValidationError):
            make_line(order, state="issue")

    @pytest.mark.parametrize("payload", [
        {"article_ref": "  "},
        {"article_ref": "X", "qty_ordered": -1},
        {"article_ref": "X", "service_current": "produced"},
        {"article_ref": "X", "service_current": "ironing"},
    ])
    def test_invalid_payloads(self, db, make_order, payload):
        order = make_order()
        with pytest.raises(ValidationError):
            production_lines.create_line(db, order.id, payload)

    def test_unknown_order(self, db):
        with pytest.raises(NotFound):
            production_lines.create_line(db, 999, {"article_ref": "X"})


class TestUpdateLine:

    def test_override_moves_stage_and_rederives(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order)
        line = production_lines.update_line(db, line.id, {"service_current": "sewing", "qty_defect": 2})

        assert line.service_current == "sewing"
        assert line.qty_defect == 2
        assert db.get(ProductionOrder, order.id).state == "in_production"

    def test_unknown_fields_are_rejected(self, db, make_order, make_line):
        line = make_line(make_order())
        with pytest.raises(ValidationError):
            production_lines.update_line(db, line.id, {"seq": 9})

    def test_issue_cannot_be_set_directly(self, db, make_order, make_line):
        line = make_line(make_order())
        with pytest.raises(ValidationError):
            production_lines.update_line(db, line.id, {"state": "issue"})


class TestDeleteLine:

    def test_anomalies_are_detached_not_deleted(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order)
        anomaly_id = anomalies.create_anomaly(db, {
            "production_order_line_id": line.id,
            "service": "planning",
            "severity": "medium",
            "description": "wrong pattern",
        }).id

        production_lines.delete_line(db, line.id)

        db.expire_all()
        anomaly = db.get(ProductionAnomaly, anomaly_id)
        assert anomaly is not None
        assert anomaly.production_order_line_id is None
        assert anomaly.production_order_id == order.id

    def test_blocked_line_leaves_its_anomaly_on_the_order(self, db, make_order, make_line):
        order = make_order()
        blocked = make_line(order)
        make_line(order)
        a = anomalies.create_anomaly(db, {
            "production_order_line_id": blocked.id,
            "service": "planning",
            "severity": "high",
            "description": "wrong pattern",
            "is_blocking": True,
        })
        assert db.get(ProductionOrder, order.id).state == "issue"

        production_lines.delete_line(db, blocked.id)

        # the detached anomaly still blocks, now on the order header
        db.expire_all()
        assert db.get(ProductionOrder, order.id).state == "issue"

        anomalies.update_anomaly(db, a.id, {"resolved": True})
        db.expire_all()
        assert db.get(ProductionOrder, order.id).state == "planned"

    def test_order_is_rederived_from_the_remaining_lines(self, db, make_order, make_line):
        order = make_order()
        make_line(order)
        moving = make_line(order)
        advance_line(db, moving.id)
        assert db.get(ProductionOrder, order.id).state == "in_production"

        production_lines.delete_line(db, moving.id)

        db.expire_all()
        assert db.get(ProductionOrder, order.id).state == "planned"

    def test_remaining_lines_keep_their_numbers(self, db, make_order, make_line):
        order = make_order()
        first = make_line(order)
        make_line(order)
        production_lines.delete_line(db, first.id)

        db.expire_all()
        remaining = db.get(ProductionOrder, order.id).lines
        assert [l.seq for l in remaining] == [2]

    def test_unknown_line(self, db):
        with pytest.raises(NotFound):
            production_lines.delete_line(db, 999)


class TestLineSizes:

    def test_upsert_inserts_then_updates_by_label(self, db, make_order, make_line):
        line = make_line(make_order())

        sizes = production_lines.upsert_line_size(db, line.id, "S", 5)
        assert [(s.size, s.qty_ordered, s.qty_to_produce) for s in sizes] == [("S", 5, 5)]

        production_lines.upsert_line_size(db, line.id, "M", 3)
        sizes = production_lines.upsert_line_size(db, line.id, "S", 6, 8)
        assert [(s.size, s.qty_ordered, s.qty_to_produce) for s in sizes] == [("S", 6, 8), ("M", 3, 3)]

    def test_update_and_delete(self, db, make_order, make_line):
        line = make_line(make_order())
        size = production_lines.upsert_line_size(db, line.id, "L", 4)[0]

        updated = production_lines.update_line_size(db, size.id, {"qty_produced": 4, "qty_defect": 1})
        assert (updated.qty_produced, updated.qty_defect) == (4, 1)

        with pytest.raises(ValidationError):
            production_lines.update_line_size(db, size.id, {"qty_produced": -1})

        production_lines.delete_line_size(db, size.id)
        assert production_lines.list_line_sizes(db, line.id) == []

    def test_sizes_go_with_the_line(self, db, make_order, make_line):
        line = make_line(make_order())
        production_lines.upsert_line_size(db, line.id, "S", 1)
        line_id = line.id

        production_lines.delete_line(db, line_id)

        assert db.get(ProductionOrderLine, line_id) is None
        with pytest.raises(NotFound):
            production_lines.list_line_sizes(db, line_id)
