"""Shared pytest fixtures."""

import pytest

from archive_query.query.types import Filter, FilterField, FilterOperator


@pytest.fixture
def from_john() -> Filter:
    return Filter(FilterField.FROM, FilterOperator.EQ, "john")


@pytest.fixture
def has_attachment() -> Filter:
    return Filter(FilterField.HAS_ATTACHMENTS, FilterOperator.EQ, True)


@pytest.fixture
def before_2024() -> Filter:
    """timestamp < 2024-01-01T00:00:00Z"""
    return Filter(FilterField.TIMESTAMP, FilterOperator.LT, 1704067200000)
