from relrepo.registry import (
    EntityDefinition,
    FieldDefinition,
    FieldType,
    SchemaRegistry,
    belongs_to,
    has_many,
    has_one,
)


Users = EntityDefinition(
    name="users",
    fields=(
        FieldDefinition("user_name"),
        FieldDefinition("email"),
    ),
    relationships=(
        has_one("profile", "profiles", "user_id"),
        has_many("blogs", "user_id"),
        has_many("posts", "user_id"),
        has_many("comments", "user_id"),
    ),
)

Profiles = EntityDefinition(
    name="profiles",
    fields=(
        FieldDefinition("user_id", FieldType.INTEGER),
        FieldDefinition("first_name"),
        FieldDefinition("last_name"),
    ),
    relationships=(belongs_to("user", "users"),),
)

Blogs = EntityDefinition(
    name="blogs",
    fields=(
        FieldDefinition("user_id", FieldType.INTEGER),
        FieldDefinition("name"),
        FieldDefinition("slug"),
    ),
    relationships=(
        has_many("posts", "blog_id"),
        belongs_to("user", "users"),
    ),
)

Posts = EntityDefinition(
    name="posts",
    fields=(
        FieldDefinition("blog_id", FieldType.INTEGER),
        FieldDefinition("user_id", FieldType.INTEGER),
        FieldDefinition("name"),
        FieldDefinition("slug"),
        FieldDefinition("description", FieldType.TEXT),
        FieldDefinition("content", FieldType.TEXT),
    ),
    relationships=(
        has_many("comments", "post_id"),
        belongs_to("user", "users"),
        belongs_to("blog", "blogs"),
    ),
)

Comments = EntityDefinition(
    name="comments",
    fields=(
        FieldDefinition("post_id", FieldType.INTEGER),
        FieldDefinition("user_id", FieldType.INTEGER),
        FieldDefinition("content", FieldType.TEXT),
    ),
    relationships=(
        belongs_to("user", "users"),
        belongs_to("post", "posts"),
    ),
)

BLOG_ENTITIES = (Users, Profiles, Blogs, Posts, Comments)


def build_registry() -> SchemaRegistry:
    return SchemaRegistry.from_definitions(BLOG_ENTITIES)
