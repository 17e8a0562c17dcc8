import pytest

from relrepo.db import Database, StorageGateway
from relrepo.errors import ConstraintViolation, NotFound, UnknownEntity, UnknownField
from relrepo.registry import (
    EntityDefinition,
    FieldDefinition,
    FieldType,
    OnDelete,
    SchemaRegistry,
    belongs_to,
    has_many,
)
from tests.conftest import MEMORY_URL
from tests.factories import make_blog, make_comment, make_post, make_user


def _selects(statements):
    return [s for s in statements if s.lstrip().upper().startswith("SELECT")]


def test_insert_assigns_key(gateway):
    row = gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
    assert row.key is not None
    assert row == gateway.get_by_key("users", row.key)


def test_insert_missing_required_field(gateway):
    with pytest.raises(ConstraintViolation) as exc:
        gateway.insert("users", {"user_name": "jane"})
    assert "email" in exc.value.detail
    assert gateway.select_where("users") == []


def test_insert_rejects_primary_key(gateway):
    with pytest.raises(ConstraintViolation):
        gateway.insert("users", {"id": 5, "user_name": "jane", "email": "jane@doe.org"})


def test_insert_rejects_unknown_field(gateway):
    with pytest.raises(UnknownField) as exc:
        gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org", "age": 3})
    assert exc.value.fields == ["age"]


def test_insert_unknown_entity(gateway):
    with pytest.raises(UnknownEntity):
        gateway.insert("tags", {"name": "x"})


def test_insert_dangling_foreign_key(gateway):
    with pytest.raises(ConstraintViolation) as exc:
        gateway.insert("blogs", {"user_id": 999, "name": "b", "slug": "b"})
    assert "users" in exc.value.detail
    assert gateway.select_where("blogs") == []


def test_update_returns_merged_row(gateway):
    row = gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
    updated = gateway.update_by_key("users", row.key, {"email": "jane@example.com"})
    assert updated.user_name == "jane"
    assert updated.email == "jane@example.com"
    assert gateway.get_by_key("users", row.key) == updated


def test_update_missing_row(gateway):
    with pytest.raises(NotFound):
        gateway.update_by_key("users", 42, {"email": "x"})


def test_update_cannot_null_required_field(gateway):
    row = gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
    with pytest.raises(ConstraintViolation):
        gateway.update_by_key("users", row.key, {"email": None})


def test_delete_returns_prior_row(gateway):
    row = gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
    deleted = gateway.delete_by_key("users", row.key)
    assert deleted == row
    with pytest.raises(NotFound):
        gateway.get_by_key("users", row.key)
    with pytest.raises(NotFound):
        gateway.delete_by_key("users", row.key)


def test_select_where_conditions_and_order(gateway):
    keys = [
        gateway.insert("users", {"user_name": name, "email": f"{name}@doe.org"}).key
        for name in ("c", "a", "b")
    ]
    assert [r.key for r in gateway.select_where("users")] == sorted(keys)
    assert [r.user_name for r in gateway.select_where("users", {"user_name": ["a", "b"]})] == ["a", "b"]
    assert [r.user_name for r in gateway.select_where("users", {"email": "c@doe.org"})] == ["c"]
    assert gateway.select_where("users", {"user_name": "zed"}) == []


def test_select_where_none_matches_null(tasks_gateway):
    user = tasks_gateway.insert("users", {"name": "Jane", "email": "jane@doe.org"})
    tasks_gateway.insert("tasks", {"title": "owned", "user_id": user.key})
    tasks_gateway.insert("tasks", {"title": "loose"})
    assert [t.title for t in tasks_gateway.select_where("tasks", {"user_id": None})] == ["loose"]


def test_select_where_unknown_field(gateway):
    with pytest.raises(UnknownField):
        gateway.select_where("users", {"nickname": "j"})


def test_select_in_batches_by_chunk_size(database, statements):
    gateway = StorageGateway(database.registry, database.metadata, database.session(), in_chunk_size=2)
    try:
        keys = [
            gateway.insert("users", {"user_name": f"u{n}", "email": f"u{n}@doe.org"}).key
            for n in range(5)
        ]
        statements.clear()
        rows = gateway.select_in("users", "id", list(reversed(keys)) + [keys[0], None])
        assert [r.key for r in rows] == keys
        assert len(_selects(statements)) == 3
    finally:
        gateway.session.close()


def test_select_in_empty_issues_no_query(gateway, statements):
    assert gateway.select_in("users", "id", [None]) == []
    assert statements == []


def test_transaction_rolls_back_on_error(gateway):
    with pytest.raises(RuntimeError):
        with gateway.transaction():
            gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
            assert gateway.in_transaction
            raise RuntimeError("boom")
    assert not gateway.in_transaction
    assert gateway.select_where("users") == []


def test_nested_transactions_commit_once(gateway):
    with gateway.transaction():
        with gateway.transaction():
            gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
        assert gateway.in_transaction
    assert len(gateway.select_where("users")) == 1


def test_delete_user_cascades_through_graph(repos, gateway):
    jane = make_user(repos, "jane")
    john = make_user(repos, "john")
    repos.profiles.create({"user_id": jane.id, "first_name": "Jane", "last_name": "Doe"})
    blog_row = make_blog(repos, jane)
    post = make_post(repos, jane, blog_row)
    make_comment(repos, john, post)
    other_post = make_post(repos, john, make_blog(repos, john, "john blog"))
    kept = make_comment(repos, john, other_post)
    make_comment(repos, jane, other_post)

    gateway.delete_by_key("users", jane.id)

    assert [u.user_name for u in gateway.select_where("users")] == ["john"]
    assert gateway.select_where("profiles") == []
    assert [b.name for b in gateway.select_where("blogs")] == ["john blog"]
    assert [p.key for p in gateway.select_where("posts")] == [other_post.id]
    assert [c.key for c in gateway.select_where("comments")] == [kept.id]


def test_restrict_blocks_delete(tasks_gateway):
    user = tasks_gateway.insert("users", {"name": "Jane", "email": "jane@doe.org"})
    task = tasks_gateway.insert("tasks", {"title": "write", "user_id": user.key})
    with pytest.raises(ConstraintViolation):
        tasks_gateway.delete_by_key("users", user.key)
    assert tasks_gateway.get_by_key("users", user.key) == user

    tasks_gateway.delete_by_key("tasks", task.key)
    tasks_gateway.delete_by_key("users", user.key)
    assert tasks_gateway.select_where("users") == []


def _owners_registry(nullable):
    owners = EntityDefinition(
        name="owners",
        fields=(FieldDefinition("name"),),
        relationships=(has_many("pets", "owner_id"),),
    )
    pets = EntityDefinition(
        name="pets",
        fields=(FieldDefinition("owner_id", FieldType.INTEGER, nullable=nullable), FieldDefinition("name")),
        relationships=(belongs_to("owner", "owners", on_delete=OnDelete.SET_NULL),),
    )
    return SchemaRegistry.from_definitions([owners, pets])


@pytest.fixture
def pets_gateway():
    def _open(nullable):
        database = Database(_owners_registry(nullable), MEMORY_URL)
        database.create_schema()
        opened.append(database)
        return StorageGateway(database.registry, database.metadata, database.session())

    opened = []
    yield _open
    for database in opened:
        database.dispose()


def test_set_null_detaches_dependents(pets_gateway):
    gateway = pets_gateway(nullable=True)
    owner = gateway.insert("owners", {"name": "ann"})
    gateway.insert("pets", {"name": "rex", "owner_id": owner.key})
    gateway.delete_by_key("owners", owner.key)
    (pet,) = gateway.select_where("pets")
    assert pet.name == "rex"
    assert pet.owner_id is None


def test_set_null_on_required_foreign_key(pets_gateway):
    gateway = pets_gateway(nullable=False)
    owner = gateway.insert("owners", {"name": "ann"})
    gateway.insert("pets", {"name": "rex", "owner_id": owner.key})
    with pytest.raises(ConstraintViolation):
        gateway.delete_by_key("owners", owner.key)
    assert len(gateway.select_where("owners")) == 1


def test_insert_rejects_mistyped_value(gateway):
    with pytest.raises(ConstraintViolation) as exc:
        gateway.insert("users", {"user_name": ["jane"], "email": "jane@doe.org"})
    assert "user_name" in exc.value.detail
    assert gateway.select_where("users") == []


def test_update_rejects_mistyped_value(gateway):
    user = gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
    blog_row = gateway.insert("blogs", {"user_id": user.key, "name": "b", "slug": "b"})
    with pytest.raises(ConstraintViolation):
        gateway.update_by_key("blogs", blog_row.key, {"user_id": "1"})


class _Interrupted(BaseException):
    pass


def test_transaction_rolls_back_on_interrupt(gateway):
    with pytest.raises(_Interrupted):
        with gateway.transaction():
            gateway.insert("users", {"user_name": "jane", "email": "jane@doe.org"})
            raise _Interrupted()
    assert not gateway.in_transaction

    gateway.insert("users", {"user_name": "john", "email": "john@doe.org"})
    assert [u.user_name for u in gateway.select_where("users")] == ["john"]
