"""Populating an empty production order from its sales order."""

from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from models import ProductionOrder, ProductionOrderLine
from services.errors import Conflict, InvalidState, NotFound
from services.sales_import import group_sales_lines, import_from_sales

SALES_LINES = [
    ("A", "red", "S", 5),
    ("A", "red", "M", 3),
    ("B", "blue", "L", 2),
]


def _line_count(db, order_id):
    return db.scalar(
        select(func.count()).select_from(ProductionOrderLine)
        .where(ProductionOrderLine.production_order_id == order_id)
    )


class TestGrouping:

    def test_groups_by_article_and_color_in_key_order(self):
        rows = [
            SimpleNamespace(article_ref="B", color="blue", size="L", qty=2),
            SimpleNamespace(article_ref="A", color="red", size="S", qty=5),
            SimpleNamespace(article_ref="A", color=None, size="S", qty=1),
            SimpleNamespace(article_ref="A", color="red", size="M", qty=3),
        ]
        groups = group_sales_lines(rows)
        assert [key for key, _ in groups] == [("A", ""), ("A", "red"), ("B", "blue")]
        assert list(groups[1][1].items()) == [("S", 5), ("M", 3)]

    def test_repeated_size_is_summed(self):
        rows = [
            SimpleNamespace(article_ref="A", color="red", size="S", qty=5),
            SimpleNamespace(article_ref="A", color="red", size="S", qty=4),
        ]
        [(_, sizes)] = group_sales_lines(rows)
        assert dict(sizes) == {"S": 9}


class TestImportFromSales:

    def test_creates_one_line_per_group(self, db, make_order, make_sales_order):
        make_sales_order("SO250001", SALES_LINES)
        order = make_order(sale_ref="SO250001")

        result = import_from_sales(db, order.id)

        assert result["created_lines"] == 2
        assert result["details"] == [
            {
                "line_code": f"{order.code}.1",
                "article_ref": "A",
                "color": "red",
                "sizes": [{"size": "S", "qty": 5}, {"size": "M", "qty": 3}],
            },
            {
                "line_code": f"{order.code}.2",
                "article_ref": "B",
                "color": "blue",
                "sizes": [{"size": "L", "qty": 2}],
            },
        ]

        db.expire_all()
        order = db.get(ProductionOrder, order.id)
        assert order.state == "planned"
        first, second = order.lines
        assert (first.qty_ordered, first.qty_to_produce) == (8, 8)
        assert [(s.size, s.qty_ordered) for s in first.sizes] == [("S", 5), ("M", 3)]
        assert (second.qty_ordered, second.color) == (2, "blue")
        assert [(s.size, s.qty_to_produce) for s in second.sizes] == [("L", 2)]

    def test_order_with_lines_is_a_conflict(self, db, make_order, make_line, make_sales_order):
        make_sales_order("SO250002", SALES_LINES)
        order = make_order(sale_ref="SO250002")
        make_line(order)

        with pytest.raises(Conflict):
            import_from_sales(db, order.id)
        assert _line_count(db, order.id) == 1

    def test_second_import_is_a_conflict(self, db, make_order, make_sales_order):
        make_sales_order("SO250003", SALES_LINES)
        order = make_order(sale_ref="SO250003")
        import_from_sales(db, order.id)

        with pytest.raises(Conflict):
            import_from_sales(db, order.id)
        assert _line_count(db, order.id) == 2

    def test_missing_sale_ref(self, db, make_order):
        order = make_order()
        with pytest.raises(InvalidState):
            import_from_sales(db, order.id)

    def test_unknown_sales_order(self, db, make_order):
        order = make_order(sale_ref="SO999999")
        with pytest.raises(NotFound):
            import_from_sales(db, order.id)

    def test_sales_order_without_lines(self, db, make_order, make_sales_order):
        make_sales_order("SO250004")
        order = make_order(sale_ref="SO250004")
        with pytest.raises(InvalidState):
            import_from_sales(db, order.id)
        assert _line_count(db, order.id) == 0

    def test_unknown_order(self, db):
        with pytest.raises(NotFound):
            import_from_sales(db, 999)
