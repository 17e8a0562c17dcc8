"""Users owning a list of tasks; the foreign key is nullable and deletes are restricted."""
from relrepo.registry import (
    EntityDefinition,
    FieldDefinition,
    FieldType,
    OnDelete,
    SchemaRegistry,
    belongs_to,
    has_many,
)


TaskUsers = EntityDefinition(
    name="users",
    fields=(
        FieldDefinition("name"),
        FieldDefinition("email"),
    ),
    relationships=(has_many("tasks", "user_id"),),
)

Tasks = EntityDefinition(
    name="tasks",
    fields=(
        FieldDefinition("user_id", FieldType.INTEGER, nullable=True),
        FieldDefinition("title"),
    ),
    relationships=(belongs_to("user", "users", on_delete=OnDelete.RESTRICT),),
)

TASK_ENTITIES = (TaskUsers, Tasks)


def build_registry() -> SchemaRegistry:
    return SchemaRegistry.from_definitions(TASK_ENTITIES)
