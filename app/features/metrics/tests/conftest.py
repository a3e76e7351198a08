"""Test fixtures for metrics module."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.core.database import Row


@pytest.fixture
def user_row() -> Row:
    """Create a users row."""
    return {"id": 42, "name": "Ada Lovelace", "role": "account_executive"}


@pytest.fixture
def group_row() -> Row:
    """Create a groups row."""
    return {"id": 7, "name": "West Coast"}


@pytest.fixture
def sale_row() -> Row:
    """Create a sales row."""
    return {"id": 999, "user_id": 42, "amount": Decimal("250.00"), "date": date(2021, 2, 3)}


@pytest.fixture
def user_sale_rows() -> list[Row]:
    """Create one page of sales for user 42."""
    return [
        {"id": 100 + i, "amount": Decimal(f"{10 + i}.00"), "date": date(2021, 2, 1 + i)}
        for i in range(10)
    ]


@pytest.fixture
def empty_summary_row() -> Row:
    """Create the single row an aggregate returns over zero sales."""
    return {
        "total_sales": 0,
        "total_revenue": None,
        "average_sale_amount": None,
        "min_sale_amount": None,
        "max_sale_amount": None,
        "active_users": 0,
    }


@pytest.fixture
def trend_rows() -> list[Row]:
    """Create two monthly trend buckets."""
    return [
        {
            "time_period": datetime(2021, 1, 1),
            "sales_count": 3,
            "total_revenue": Decimal("300.00"),
            "average_revenue": Decimal("100.00"),
        },
        {
            "time_period": datetime(2021, 2, 1),
            "sales_count": 1,
            "total_revenue": Decimal("50.00"),
            "average_revenue": Decimal("50.00"),
        },
    ]
