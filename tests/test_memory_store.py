"""
Tests for the in-process entity store.
"""

import pytest

from backends.memory import EntityExistsError, EntityNotFoundError, InMemoryStore
from core.entity import CustomerEntity


@pytest.fixture
def table(memory_store):
    memory_store.ensure_table('people')
    return memory_store


def _entity(pk="pk", rk="rk", email="A@contoso.com"):
    return CustomerEntity(pk, rk, email, "425-555-0102", "BIO")


def test_ensure_table_is_idempotent(memory_store):
    memory_store.ensure_table('people')
    memory_store.insert(_entity())
    memory_store.ensure_table('people')

    assert memory_store.table_name == 'people'
    assert memory_store.retrieve("pk", "rk").email == "A@contoso.com"


def test_operations_require_table(memory_store):
    with pytest.raises(RuntimeError):
        memory_store.insert(_entity())


def test_operations_require_connection():
    store = InMemoryStore({})
    with pytest.raises(RuntimeError):
        store.retrieve("pk", "rk")


def test_insert_then_retrieve(table):
    table.insert(_entity())
    assert table.retrieve("pk", "rk") == _entity()


def test_insert_existing_key_fails(table):
    table.insert(_entity())
    with pytest.raises(EntityExistsError):
        table.insert(_entity())


def test_local_mutation_does_not_change_stored_entity(table):
    entity = _entity()
    table.insert(entity)
    entity.phone_number = "000"
    assert table.retrieve("pk", "rk").phone_number == "425-555-0102"


def test_query_by_email_matches_only_that_email(table):
    table.insert(_entity("p1", "r1", "A@contoso.com"))
    table.insert(_entity("p2", "r2", "B@contoso.com"))

    matches = list(table.query_by_email("A@contoso.com"))
    assert [m.key for m in matches] == [("p1", "r1")]
    assert list(table.query_by_email("C@contoso.com")) == []


def test_replace(table):
    table.insert(_entity())
    updated = _entity()
    updated.phone_number = "425-555-5555"
    table.replace(updated)
    assert table.retrieve("pk", "rk").phone_number == "425-555-5555"


def test_replace_missing_fails(table):
    with pytest.raises(EntityNotFoundError):
        table.replace(_entity())


def test_delete(table):
    table.insert(_entity())
    table.delete("pk", "rk")
    with pytest.raises(EntityNotFoundError):
        table.retrieve("pk", "rk")


def test_delete_missing_fails(table):
    with pytest.raises(EntityNotFoundError):
        table.delete("pk", "rk")


def test_context_manager_connects_and_disconnects():
    store = InMemoryStore({})
    with store as s:
        assert s.connection is not None
    assert store.connection is None


def test_store_info(table):
    info = table.get_store_info()
    assert info['type'] == 'memory'
    assert info['name'] == 'InMemoryStore'
    assert info['table'] == 'people'
    assert info['connected'] is True
