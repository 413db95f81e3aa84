from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional


class VoteType(str, Enum):
    USE = "use"
    DISLIKE = "dislike"
    PAY = "pay"


class VoteAction(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class UserVotes(BaseModel):
    use: bool = False
    dislike: bool = False
    pay: bool = False


class VoteToggleRequest(BaseModel):
    vote_type: VoteType


class UserVoteResponse(BaseModel):
    idea_id: str
    vote_type: Optional[VoteType] = None


class BatchUserVotesRequest(BaseModel):
    idea_ids: List[str] = Field(..., max_length=200)


class VoteIntentRequest(BaseModel):
    action: VoteAction


class VoteCountsResponse(BaseModel):
    use: int = 0
    dislike: int = 0
    pay: int = 0


class VoteIntentResponse(BaseModel):
    idea_id: str
    votes: UserVotes
    counts: VoteCountsResponse
    pending: bool
