"""Per-line stage progression and its guards."""

import pytest

from models import ProductionOrder, ProductionState, ServiceStage
from services import anomalies, production_lines
from services.errors import Blocked, InvalidState, NotFound, PreconditionFailed
from services.stage_machine import STAGE_FLOW, advance_line, next_stage


def test_stage_flow_order():
    assert [s.value for s in STAGE_FLOW] == [
        "planning", "cutting", "services", "sewing", "finishing", "produced",
    ]
    assert next_stage("finishing") == ServiceStage.PRODUCED
    assert next_stage("produced") is None


class TestAdvance:

    def test_five_advances_reach_produced(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order, qty_ordered=10)

        line = advance_line(db, line.id)                      # planning -> cutting
        assert line.service_current == "cutting"

        production_lines.update_line(db, line.id, {"qty_produced": 4})
        line = advance_line(db, line.id)                      # cutting -> services
        line = advance_line(db, line.id)                      # services -> sewing
        line = advance_line(db, line.id)                      # sewing -> finishing
        assert line.service_current == "finishing"

        production_lines.update_line(db, line.id, {"qty_produced": 10})
        line = advance_line(db, line.id)                      # finishing -> produced

        assert line.service_current == ServiceStage.PRODUCED.value
        assert line.state == ProductionState.PRODUCED.value
        assert db.get(ProductionOrder, order.id).state == ProductionState.PRODUCED.value

    def test_order_goes_in_production_after_first_advance(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order)
        advance_line(db, line.id)
        assert db.get(ProductionOrder, order.id).state == ProductionState.IN_PRODUCTION.value

    def test_cutting_needs_produced_quantity(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order)
        advance_line(db, line.id)

        with pytest.raises(PreconditionFailed, match="cutting not completed"):
            advance_line(db, line.id)

        db.refresh(line)
        assert line.service_current == "cutting"

    def test_finishing_needs_full_quantity(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order, qty_ordered=10, service_current="finishing")
        production_lines.update_line(db, line.id, {"qty_produced": 9})

        with pytest.raises(PreconditionFailed, match="produced quantity insufficient"):
            advance_line(db, line.id)

        db.refresh(line)
        assert line.service_current == "finishing"

    def test_blocking_anomaly_blocks_advance(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order, service_current="sewing")
        production_lines.update_line(db, line.id, {"qty_produced": 10})
        anomalies.create_anomaly(db, {
            "production_order_line_id": line.id,
            "service": "sewing",
            "severity": "high",
            "description": "needle broke",
            "is_blocking": True,
        })

        with pytest.raises(Blocked):
            advance_line(db, line.id)

        db.refresh(line)
        assert line.service_current == "sewing"

    def test_non_blocking_anomaly_does_not_block(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order)
        anomalies.create_anomaly(db, {
            "production_order_line_id": line.id,
            "service": "planning",
            "severity": "low",
            "description": "late fabric",
        })
        assert advance_line(db, line.id).service_current == "cutting"

    def test_produced_line_cannot_advance(self, db, make_order, make_line):
        order = make_order()
        line = make_line(order, qty_ordered=0, service_current="finishing")
        line = advance_line(db, line.id)
        assert line.service_current == "produced"

        with pytest.raises(InvalidState, match="already produced"):
            advance_line(db, line.id)

    def test_unknown_line(self, db):
        with pytest.raises(NotFound):
            advance_line(db, 4242)
