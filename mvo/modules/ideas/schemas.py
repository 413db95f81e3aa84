from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime


class VotesByType(BaseModel):
    use: int = 0
    dislike: int = 0
    pay: int = 0

    @property
    def total(self) -> int:
        return self.use + self.dislike + self.pay


class IdeaCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    tags: List[str] = []
    image: Optional[str] = None
    video: Optional[str] = None
    content: List[Dict[str, Any]] = []  # rich content blocks (text, heading, image, video, carousel, ...)
    status_flag: str = "new"
    anonymous: bool = False
    space_id: Optional[str] = None


class IdeaUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None  # None keeps current tags, [] clears them
    image: Optional[str] = None
    video: Optional[str] = None
    content: Optional[List[Dict[str, Any]]] = None
    status_flag: Optional[str] = None
    anonymous: Optional[bool] = None


class IdeaResponse(BaseModel):
    id: str
    title: str
    description: str = ""
    author: str
    score: int = 0
    votes: int = 0
    votes_by_type: VotesByType = VotesByType()
    comment_count: int = 0
    tags: List[str] = []
    created_at: Optional[datetime] = None
    image: Optional[str] = None
    video: Optional[str] = None
    content: Optional[List[Dict[str, Any]]] = None
    status_flag: Optional[str] = None
    anonymous: bool = False
    creator_email: Optional[str] = None
    space_id: Optional[str] = None

    class Config:
        from_attributes = True


class FilterCondition(BaseModel):
    field: str  # score | votes | comment_count | votes_by_type.<use|dislike|pay>
    operator: Literal[">", "<", "=", ">=", "<="]
    value: float


class AdvancedFilterRequest(BaseModel):
    search_query: Optional[str] = None
    filter_conditions: List[FilterCondition] = []
    sort_field: str = "created_at"
    sort_direction: Literal["asc", "desc"] = "desc"
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class FilteredIdeasResponse(BaseModel):
    ideas: List[IdeaResponse]
    total: int


class SentimentBreakdown(BaseModel):
    positive: float = 0
    neutral: float = 0
    negative: float = 0


class IdeaStats(BaseModel):
    idea: IdeaResponse
    engagement_rate: float
    vote_distribution: VotesByType
    category_distribution: Dict[str, int]


class UserIdeasAnalytics(BaseModel):
    total_ideas: int = 0
    total_votes: int = 0
    total_comments: int = 0
    average_score: float = 0
    engagement_rate: float = 0
    impact_score: float = 0
    feasibility_score: float = 0
    ideas_with_stats: List[IdeaStats] = []
    top_performing_ideas: List[IdeaResponse] = []
    worst_performing_ideas: List[IdeaResponse] = []
    most_discussed_ideas: List[IdeaResponse] = []
    vote_type_breakdown: VotesByType = VotesByType()
    category_breakdown: Dict[str, int] = {}
    sentiment_analysis: SentimentBreakdown = SentimentBreakdown()


class IdeaVersionCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[Dict[str, Any]] = None


class IdeaVersionResponse(BaseModel):
    id: str
    idea_id: str
    version_number: int
    title: Optional[str] = None
    content: Optional[Any] = None
    is_active: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SetActiveVersionRequest(BaseModel):
    version_id: str
