import pytest

from berkomunitas_api.domain.rewards import max_quantity, total_cost


def test_total_cost_multiplies_unit_cost() -> None:
    assert total_cost(150, 3) == 450


@pytest.mark.parametrize(
    ("balance", "unit_cost", "stock", "expected"),
    [
        (1000, 100, 50, 10),  # capped
        (350, 100, 50, 3),  # balance bound
        (1000, 100, 2, 2),  # stock bound
        (99, 100, 50, 0),
        (1000, 100, 0, 0),
        (0, 100, 5, 0),
    ],
)
def test_max_quantity_is_bounded_by_balance_stock_and_cap(balance, unit_cost, stock, expected) -> None:
    assert max_quantity(balance, unit_cost, stock) == expected


def test_max_quantity_honours_explicit_cap() -> None:
    assert max_quantity(10_000, 10, 100, cap=3) == 3


def test_max_quantity_never_negative() -> None:
    assert max_quantity(-50, 10, -3) == 0


def test_max_quantity_rejects_non_positive_unit_cost() -> None:
    with pytest.raises(ValueError):
        max_quantity(100, 0, 5)
