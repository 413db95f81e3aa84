from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    parent_id: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    idea_id: str
    author: str
    author_image: Optional[str] = None
    author_id: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None
    upvotes: int = 0
    downvotes: int = 0
    usefulness_score: float = 0
    parent_id: Optional[str] = None
    upvoted: Optional[bool] = None
    downvoted: Optional[bool] = None
    replies: List["CommentResponse"] = []

    class Config:
        from_attributes = True


class CommentVoteStatus(BaseModel):
    upvoted: bool = False
    downvoted: bool = False


class CommentVotesRequest(BaseModel):
    comment_ids: List[str] = Field(..., max_length=500)


class CommentCountResponse(BaseModel):
    idea_id: str
    count: int


CommentResponse.model_rebuild()
