from pydantic import BaseModel, Field


# Field order matters: when several fields fail, the first one declared
# is the one reported back to the client.


# --- User ---

class UserRegister(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)


class UserLogin(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    username: str | None = None  # accepted and ignored
    password: str = Field(min_length=1)


class UserUpdate(BaseModel):
    email: str | None = Field(None, min_length=1, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = Field(None, min_length=1)
    bio: str | None = None
    image: str | None = Field(None, max_length=500)


class UserRegisterRequest(BaseModel):
    user: UserRegister


class UserLoginRequest(BaseModel):
    user: UserLogin


class UserUpdateRequest(BaseModel):
    user: UserUpdate


class UserResponse(BaseModel):
    email: str
    username: str
    bio: str | None
    image: str | None
    token: str


class UserEnvelope(BaseModel):
    user: UserResponse


# --- Profile ---

class ProfileResponse(BaseModel):
    username: str
    bio: str | None
    image: str | None
    following: bool


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1)
    body: str = Field(min_length=1)
    tagList: list[str] = []


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = Field(None, min_length=1)
    body: str | None = Field(None, min_length=1)
    tagList: list[str] | None = None


class ArticleCreateRequest(BaseModel):
    article: ArticleCreate


class ArticleUpdateRequest(BaseModel):
    article: ArticleUpdate


class ArticleResponse(BaseModel):
    slug: str
    title: str
    description: str
    body: str
    tagList: list[str]
    createdAt: str
    updatedAt: str
    favorited: bool
    favoritesCount: int
    author: ProfileResponse


class ArticleEnvelope(BaseModel):
    article: ArticleResponse


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    articlesCount: int


# --- Comment ---

class CommentCreate(BaseModel):
    body: str = Field(min_length=1)


class CommentCreateRequest(BaseModel):
    comment: CommentCreate


class CommentResponse(BaseModel):
    id: int
    createdAt: str
    updatedAt: str
    body: str
    author: ProfileResponse


class CommentEnvelope(BaseModel):
    comment: CommentResponse


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


# --- Tag ---

class TagListResponse(BaseModel):
    tags: list[str]
