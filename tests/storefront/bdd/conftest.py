"""Shared BDD fixtures for the storefront."""

import pytest
from storefront.cart.store import CartStore


@pytest.fixture()
def session_id():
    return "sess-bdd"


@pytest.fixture()
def cart(session_id):
    return CartStore(session_id)


@pytest.fixture()
def products():
    """Catalogue ids keyed by product title."""
    return {}


@pytest.fixture()
def outcome():
    """Container for what a When step produced: results and captured errors."""
    return {"result": None, "exc": None}
