from typing import Optional, List, Literal
from datetime import datetime

from familyhub.schemas.base import CamelModel, UserSummary, FamilySummary, EventSummary

PostType = Literal["regular", "memory", "milestone", "announcement"]
Privacy = Literal["family", "public", "private"]
Reaction = Literal["like", "love", "laugh", "wow", "sad", "angry"]


# --------------------------------------------------
# POSTS
# --------------------------------------------------
class PostCreate(CamelModel):
    content: Optional[str] = None
    media_urls: List[str] = []
    type: PostType = "regular"
    privacy: Privacy = "family"
    tags: List[str] = []
    location: Optional[dict] = None

    family_ids: List[str] = []
    event_ids: List[str] = []


class PostUpdate(CamelModel):
    content: Optional[str] = None
    media_urls: Optional[List[str]] = None
    type: Optional[PostType] = None
    privacy: Optional[Privacy] = None
    tags: Optional[List[str]] = None
    location: Optional[dict] = None

    family_ids: Optional[List[str]] = None
    event_ids: Optional[List[str]] = None


class LikeRequest(CamelModel):
    reaction: Reaction = "like"


class PostOut(CamelModel):
    id: str
    content: str
    media_urls: List[str] = []
    type: str
    privacy: str
    tags: List[str] = []
    location: Optional[dict] = None

    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    author: Optional[UserSummary] = None
    families: List[FamilySummary] = []
    events: List[EventSummary] = []


# --------------------------------------------------
# COMMENTS
# --------------------------------------------------
class CommentCreate(CamelModel):
    content: Optional[str] = None
    media_url: Optional[str] = None
    parent_id: Optional[str] = None


class ReplyOut(CamelModel):
    id: str
    post_id: str
    user_id: str
    content: str
    media_url: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    author: Optional[UserSummary] = None


class CommentOut(ReplyOut):
    replies: List[ReplyOut] = []


class PostDetailOut(PostOut):
    likes_count: int = 0
    user_liked: bool = False
    user_reaction: Optional[str] = None

    comments: List[CommentOut] = []
