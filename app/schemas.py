from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Wire format is camelCase (tagList); attributes stay snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- User ---

class RegisterUser(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    user: RegisterUser


class LoginUser(BaseModel):
    email: str
    password: str


class LoginRequest(BaseModel):
    user: LoginUser


class UserUpdate(BaseModel):
    email: str | None = Field(None, min_length=3, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = Field(None, min_length=1)
    bio: str | None = None
    image: str | None = Field(None, max_length=500)


class UserUpdateRequest(BaseModel):
    user: UserUpdate


# --- Article ---

class ArticleCreate(_CamelModel):
    title: str = Field(min_length=1, max_length=300)
    description: str
    body: str
    tag_list: list[str] = []


class ArticleCreateRequest(BaseModel):
    article: ArticleCreate


class ArticleUpdate(_CamelModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    body: str | None = None
    tag_list: list[str] | None = None


class ArticleUpdateRequest(BaseModel):
    article: ArticleUpdate


class ArticleFilters(BaseModel):
    tag: str | None = None
    author: str | None = None
    favorited: str | None = None


# --- Comment ---

class CommentCreate(BaseModel):
    body: str = Field(min_length=1)


class CommentCreateRequest(BaseModel):
    comment: CommentCreate
