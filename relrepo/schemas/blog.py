from pydantic import BaseModel, ConfigDict


class UserBase(BaseModel):
    user_name: str
    email: str


class UserCreate(UserBase):
    pass


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_name: str | None = None
    email: str | None = None


class User(UserBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


class ProfileFields(BaseModel):
    first_name: str
    last_name: str


class ProfileCreate(ProfileFields):
    user_id: int


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None


class Profile(ProfileCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)


class UserWithProfileCreate(UserBase):
    profile: ProfileFields


class BlogBase(BaseModel):
    user_id: int
    name: str
    slug: str


class BlogCreate(BlogBase):
    pass


class BlogUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int | None = None
    name: str | None = None
    slug: str | None = None


class Blog(BlogBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


class PostBase(BaseModel):
    blog_id: int
    user_id: int
    name: str
    slug: str
    description: str
    content: str


class PostCreate(PostBase):
    pass


class PostUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    blog_id: int | None = None
    user_id: int | None = None
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    content: str | None = None


class Post(PostBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


class CommentBase(BaseModel):
    post_id: int
    user_id: int
    content: str


class CommentCreate(CommentBase):
    pass


class CommentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    post_id: int | None = None
    user_id: int | None = None
    content: str | None = None


class Comment(CommentBase):
    id: int
    model_config = ConfigDict(from_attributes=True)
