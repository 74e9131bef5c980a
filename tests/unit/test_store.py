"""Credential store backends: unique-key upsert semantics."""
import pytest

from styla_connect.core.domain import AttributeFilter, Binding, Role, Token, TokenState, TokenType
from styla_connect.core.exceptions import DuplicateEntityError, StoreError
from styla_connect.core.store import InMemoryCredentialStore, SqlCredentialStore, create_store
from styla_connect.core.store.sql import EntityRecord


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryCredentialStore()
    store = SqlCredentialStore(f"sqlite:///{tmp_path / 'connector.db'}")
    store.create_all()
    return store


def test_upsert_assigns_id_and_finds_by_key(backend):
    binding = backend.upsert(Binding(client_name="acme", front_name="magazine", is_default=True))

    assert binding.id is not None
    loaded = backend.find_by_unique_key(Binding, "magazine")
    assert loaded == binding


def test_upsert_without_id_updates_existing_record(backend):
    first = backend.upsert(Binding(client_name="acme", front_name="magazine"))
    second = backend.upsert(Binding(client_name="other", front_name="magazine"))

    assert second.id == first.id
    rows = backend.find_all(Binding)
    assert len(rows) == 1
    assert rows[0].client_name == "other"


def test_upsert_rejects_key_clash_with_other_record(backend):
    backend.upsert(Binding(client_name="a", front_name="one"))
    other = backend.upsert(Binding(client_name="b", front_name="two"))

    other.front_name = "one"
    with pytest.raises(DuplicateEntityError):
        backend.upsert(other)


def test_find_all_filters_by_member_of(backend):
    for resource in ("styla_product", "styla_category", "all"):
        backend.upsert(AttributeFilter(user_type="admin", resource_id=resource, operation="read"))

    rows = backend.find_all(AttributeFilter, resource_id=["styla_product", "styla_category"])

    assert sorted(row.resource_id for row in rows) == ["styla_category", "styla_product"]


def test_delete_removes_record_and_key(backend):
    row = backend.upsert(AttributeFilter(user_type="admin", resource_id="styla_product", operation="read"))

    backend.delete(row)
    backend.delete(row)  # second delete is a no-op

    assert backend.find_by_unique_key(AttributeFilter, row.unique_key()) is None
    assert backend.find_all(AttributeFilter) == []


def test_role_sets_and_token_enums_survive_storage(backend):
    role = backend.upsert(Role(name="StylaApi2Role", user_ids={3, 1}, privileges={("styla_product", "retrieve")}))
    token = backend.upsert(Token(consumer_id=7, token="t", secret="s", type=TokenType.ACCESS, state=TokenState.PERMANENT))

    loaded_role = backend.find_by_unique_key(Role, "StylaApi2Role")
    loaded_token = backend.find_by_unique_key(Token, "7")

    assert loaded_role.id == role.id
    assert loaded_role.user_ids == {1, 3}
    assert loaded_role.privileges == {("styla_product", "retrieve")}
    assert loaded_token.state is TokenState.PERMANENT
    assert loaded_token.type is TokenType.ACCESS
    assert loaded_token.id == token.id


def test_memory_store_returns_copies():
    store = InMemoryCredentialStore()
    role = store.upsert(Role(name="r", user_ids={1}))

    role.user_ids.add(99)

    assert store.find_by_unique_key(Role, "r").user_ids == {1}


def test_create_store_selects_backend(tmp_path):
    assert isinstance(create_store(""), InMemoryCredentialStore)
    sql_store = create_store(f"sqlite:///{tmp_path / 'db.sqlite'}")
    assert isinstance(sql_store, SqlCredentialStore)
    assert sql_store.find_all(Binding) == []


def test_id_of_another_kind_never_overwrites_its_record(backend):
    binding = backend.upsert(Binding(client_name="acme", front_name="magazine", is_default=True))
    stray = Token(consumer_id=5, token="t", id=binding.id)

    if isinstance(backend, SqlCredentialStore):
        with pytest.raises(StoreError):
            backend.upsert(stray)
    else:
        backend.upsert(stray)

    loaded = backend.find_by_unique_key(Binding, "magazine")
    assert loaded is not None
    assert loaded.client_name == "acme"


@pytest.fixture()
def sql_store(tmp_path):
    store = SqlCredentialStore(f"sqlite:///{tmp_path / 'connector.db'}")
    store.create_all()
    return store


def test_unique_constraint_violation_becomes_duplicate_error(sql_store):
    """A row inserted behind the store's back still cannot duplicate a key."""
    sql_store.upsert(Binding(client_name="acme", front_name="magazine"))

    with pytest.raises(DuplicateEntityError):
        with sql_store.transaction() as session:
            session.add(EntityRecord(kind=Binding.kind, unique_key="magazine", payload={"front_name": "magazine"}))

    assert len(sql_store.find_all(Binding)) == 1


def test_same_key_allowed_across_kinds(sql_store):
    sql_store.upsert(Binding(client_name="acme", front_name="7"))
    sql_store.upsert(Token(consumer_id=7, token="t"))

    assert sql_store.find_by_unique_key(Binding, "7").client_name == "acme"
    assert sql_store.find_by_unique_key(Token, "7").token == "t"
