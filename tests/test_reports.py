from datetime import datetime, timezone
from types import SimpleNamespace

from services.reports import (
    CATEGORY_COLUMNS, INVENTORY_COLUMNS, MOVEMENT_COLUMNS, MOVEMENT_REPORT_LIMIT,
    category_report, inventory_report, movement_report, stock_value, to_csv,
)


def product(id, name, category_id=None, current_stock=0, min_stock=0, cost_price=0.0,
            selling_price=0.0, is_active=True, sku=None):
    return SimpleNamespace(
        id=id, name=name, sku=sku or f"SKU-{id}", category_id=category_id,
        current_stock=current_stock, min_stock=min_stock, cost_price=cost_price,
        selling_price=selling_price, is_active=is_active,
    )


def category(id, name, description=None, created_at=None):
    return SimpleNamespace(id=id, name=name, description=description,
                           created_at=created_at or datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc))


class TestInventoryReport:

    def test_rows_and_fallback_labels(self):
        cats = [category(1, "Tools")]
        items = [
            product(1, "Hammer", category_id=1, current_stock=4, min_stock=5, cost_price=2.5, selling_price=6.0),
            product(2, "Saw", category_id=99, current_stock=10, min_stock=2, cost_price=1.0),
            product(3, "Loose", current_stock=1),
            product(4, "Retired", category_id=1, current_stock=100, is_active=False),
        ]

        rows = inventory_report(items, cats)

        assert [r["Product Name"] for r in rows] == ["Hammer", "Saw", "Loose"]
        assert [r["Category"] for r in rows] == ["Tools", "Unknown Category", "No Category"]
        assert rows[0]["Total Value"] == 10.0
        assert rows[0]["Status"] == "Low Stock"
        assert rows[1]["Status"] == "In Stock"
        assert list(rows[0].keys()) == INVENTORY_COLUMNS

    def test_missing_cost_counts_as_zero(self):
        assert stock_value(product(1, "Free", current_stock=7, cost_price=None)) == 0


class TestCategoryReport:

    def test_aggregates_active_members(self):
        cats = [category(1, "Tools", "Hand tools"), category(2, "Empty")]
        items = [
            product(1, "Hammer", category_id=1, current_stock=4, cost_price=2.5),
            product(2, "Saw", category_id=1, current_stock=2, cost_price=10.0),
            product(3, "Retired", category_id=1, current_stock=50, cost_price=1.0, is_active=False),
            product(4, "Orphan", category_id=7, current_stock=3, cost_price=1.0),
        ]

        rows = category_report(items, cats)

        assert rows[0] == {
            "Category Name": "Tools",
            "Description": "Hand tools",
            "Number of Products": 2,
            "Total Stock": 6,
            "Total Value": 30.0,
            "Created Date": "2024-03-01",
        }
        assert rows[1]["Description"] == "N/A"
        assert rows[1]["Number of Products"] == 0
        assert rows[1]["Total Value"] == 0


class TestMovementReport:

    def test_newest_first_with_fallbacks(self):
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = datetime(2024, 2, 1, tzinfo=timezone.utc)
        movements = [
            SimpleNamespace(id=1, product_id=1, user_id=1, movement_type="incoming", quantity=5,
                            previous_stock=0, new_stock=5, reason="Delivery", created_at=early),
            SimpleNamespace(id=2, product_id=9, user_id=9, movement_type="outgoing", quantity=2,
                            previous_stock=5, new_stock=3, reason=None, created_at=late),
        ]
        users = [SimpleNamespace(id=1, email="admin@example.com")]

        rows = movement_report(movements, [product(1, "Hammer")], users)

        assert [r["Quantity"] for r in rows] == [2, 5]
        assert rows[0]["Product Name"] == "Unknown Product"
        assert rows[0]["SKU"] == "N/A"
        assert rows[0]["User"] == "Unknown User"
        assert rows[0]["Reason"] == ""
        assert rows[1]["User"] == "admin@example.com"
        assert list(rows[1].keys()) == MOVEMENT_COLUMNS

    def test_capped(self):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        movements = [
            SimpleNamespace(id=i, product_id=1, user_id=None, movement_type="incoming", quantity=1,
                            previous_stock=i, new_stock=i + 1, reason=None, created_at=stamp)
            for i in range(MOVEMENT_REPORT_LIMIT + 5)
        ]

        rows = movement_report(movements, [], [])

        assert len(rows) == MOVEMENT_REPORT_LIMIT
        assert rows[0]["New Stock"] == MOVEMENT_REPORT_LIMIT + 5


class TestCsv:

    def test_header_only_when_empty(self):
        assert to_csv([], CATEGORY_COLUMNS) == ",".join(CATEGORY_COLUMNS) + "\n"

    def test_quotes_awkward_fields(self):
        rows = inventory_report(
            [product(1, "Widget, large", current_stock=3, min_stock=1),
             product(2, 'The "Best" Bolt', current_stock=1, min_stock=1)],
            [],
        )

        lines = to_csv(rows, INVENTORY_COLUMNS).splitlines()

        assert lines[0] == ",".join(INVENTORY_COLUMNS)
        assert lines[1].startswith('"Widget, large",SKU-1,No Category,3,1,')
        assert lines[2].startswith('"The ""Best"" Bolt",SKU-2,')
        assert len(lines) == 3
