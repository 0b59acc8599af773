from types import SimpleNamespace

import pytest

from services.alerts import HEALTHY, LOW_STOCK, OUT_OF_STOCK, classify, evaluate, is_low_stock


def make_product(name, current_stock, min_stock, is_active=True):
    return SimpleNamespace(name=name, current_stock=current_stock, min_stock=min_stock, is_active=is_active)


class TestClassify:

    @pytest.mark.parametrize("current_stock,min_stock,expected", [
        (0, 5, OUT_OF_STOCK),
        (0, 0, OUT_OF_STOCK),
        (3, 5, LOW_STOCK),
        (5, 5, LOW_STOCK),
        (6, 5, HEALTHY),
        (1, 0, HEALTHY),
    ])
    def test_levels(self, current_stock, min_stock, expected):
        assert classify(make_product("p", current_stock, min_stock)) == expected

    def test_threshold_is_inclusive(self):
        assert is_low_stock(make_product("p", 10, 10))
        assert not is_low_stock(make_product("p", 11, 10))


class TestEvaluate:

    def test_partitions_active_products(self):
        items = [
            make_product("empty", 0, 2),
            make_product("short", 2, 4),
            make_product("fine", 9, 4),
            make_product("edge", 4, 4),
            make_product("retired", 0, 4, is_active=False),
        ]

        summary = evaluate(items)

        assert [p.name for p in summary.out_of_stock] == ["empty"]
        assert [p.name for p in summary.low_stock] == ["short", "edge"]
        assert [p.name for p in summary.healthy] == ["fine"]
        assert summary.out_of_stock_count == 1
        assert summary.low_stock_count == 2
        assert summary.has_alerts

    def test_every_active_product_lands_in_exactly_one_bucket(self):
        items = [make_product(f"p{i}", i % 4, 2) for i in range(12)]

        summary = evaluate(items)

        names = [p.name for bucket in (summary.out_of_stock, summary.low_stock, summary.healthy) for p in bucket]
        assert sorted(names) == sorted(p.name for p in items)

    def test_no_alerts(self):
        summary = evaluate([make_product("fine", 10, 1)])
        assert not summary.has_alerts
        assert evaluate([]).healthy == []
