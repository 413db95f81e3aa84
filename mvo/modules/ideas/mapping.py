"""Shape Supabase idea rows into API responses.

Rows come from a select with the joins in ``IDEA_SELECT``. Content is stored
either as a bare list of blocks (older rows) or as an object carrying the
blocks plus hero media and description.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from mvo.modules.ideas.schemas import IdeaResponse, VotesByType

logger = logging.getLogger(__name__)

VOTE_TYPES = ("dislike", "use", "pay")

IDEA_SELECT = """
    id,
    title,
    status_flag,
    content,
    created_at,
    anonymous,
    space_id,
    users!ideas_creator_id_fkey (
        username,
        full_name,
        email
    ),
    idea_votes (
        vote_type
    ),
    idea_tags (
        tags (
            name
        )
    ),
    comments!left (
        id
    )
"""


def compute_score(votes: VotesByType) -> int:
    return votes.pay * 3 + votes.use * 2 - votes.dislike


def most_voted_type(votes: VotesByType) -> Optional[str]:
    """Vote type with the highest count; ties keep the earlier type. None without votes."""
    if votes.total == 0:
        return None
    best = VOTE_TYPES[0]
    for vote_type in VOTE_TYPES[1:]:
        if getattr(votes, vote_type) > getattr(votes, best):
            best = vote_type
    return best


def _count_votes(rows: List[Dict[str, Any]]) -> VotesByType:
    counts = {t: 0 for t in VOTE_TYPES}
    for row in rows or []:
        vote_type = row.get("vote_type")
        if vote_type in counts:
            counts[vote_type] += 1
    return VotesByType(**counts)


def _split_content(content: Any) -> Tuple[List[Dict[str, Any]], Optional[str], Optional[str], Optional[str]]:
    if isinstance(content, list):
        return content, None, None, None
    if isinstance(content, dict):
        return (
            content.get("blocks") or [],
            content.get("hero_image"),
            content.get("hero_video"),
            content.get("description"),
        )
    return [], None, None, None


def _first_block_src(blocks: List[Dict[str, Any]], block_type: str) -> Optional[str]:
    block = next((b for b in blocks if b.get("type") == block_type), None)
    return block.get("src") if block else None


def _first_carousel_media(blocks: List[Dict[str, Any]], key: str) -> Optional[str]:
    for block in blocks:
        if block.get("type") != "carousel":
            continue
        for slide in block.get("slides") or []:
            if slide.get(key):
                return slide[key]
        # only the first carousel is considered
        return None
    return None


def resolve_media(blocks: List[Dict[str, Any]], hero_image: Optional[str], hero_video: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Return (image, video) for cards, falling back through the content blocks."""
    if not hero_image and not hero_video and blocks:
        first = blocks[0]
        if first.get("type") == "video":
            hero_video = first.get("src")
        elif first.get("type") == "image":
            hero_image = first.get("src")
    video = hero_video or _first_block_src(blocks, "video") or _first_carousel_media(blocks, "video")
    image = hero_image or _first_block_src(blocks, "image") or _first_carousel_media(blocks, "image")
    return image, video


def resolve_author(row: Dict[str, Any]) -> str:
    if row.get("anonymous"):
        return "Anonymous"
    user = row.get("users") or {}
    return user.get("username") or user.get("full_name") or "Unknown User"


def map_db_idea(row: Dict[str, Any]) -> IdeaResponse:
    votes = _count_votes(row.get("idea_votes"))
    blocks, hero_image, hero_video, description = _split_content(row.get("content"))
    if not description:
        description = next(
            (b.get("content") for b in blocks if b.get("type") == "text"),
            None,
        ) or ""
    image, video = resolve_media(blocks, hero_image, hero_video)
    tags = [
        it["tags"]["name"]
        for it in row.get("idea_tags") or []
        if it.get("tags") and it["tags"].get("name")
    ]
    user = row.get("users") or {}
    return IdeaResponse(
        id=row["id"],
        title=row.get("title") or "",
        description=description,
        author=resolve_author(row),
        score=compute_score(votes),
        votes=votes.total,
        votes_by_type=votes,
        comment_count=len(row.get("comments") or []),
        tags=tags,
        created_at=row.get("created_at"),
        image=image,
        video=video,
        content=blocks,
        status_flag=row.get("status_flag"),
        anonymous=bool(row.get("anonymous")),
        creator_email=user.get("email"),
        space_id=row.get("space_id"),
    )


def _rpc_vote_counts(payload: Dict[str, Any]) -> VotesByType:
    # toggle_idea_vote returns flat *_votes columns, rpc_get_filtered_ideas a votesByType object
    if any(f"{t}_votes" in payload for t in VOTE_TYPES):
        return VotesByType(**{t: payload.get(f"{t}_votes") or 0 for t in VOTE_TYPES})
    by_type = payload.get("votesByType") or payload.get("votes_by_type") or {}
    return VotesByType(**{t: by_type.get(t) or 0 for t in VOTE_TYPES})


def map_rpc_idea(payload: Dict[str, Any]) -> IdeaResponse:
    """Map an idea object produced by an RPC (vote toggle, filtered search) to IdeaResponse."""
    content = payload.get("content")
    blocks, hero_image, hero_video, description = _split_content(content)
    votes = _rpc_vote_counts(payload)
    creator = payload.get("creator") or {}
    image, video = resolve_media(blocks, hero_image, hero_video)
    score = payload.get("score")
    total = payload.get("votes")
    return IdeaResponse(
        id=payload["id"],
        title=payload.get("title") or "",
        description=description or "",
        author="Anonymous" if payload.get("anonymous") else (
            creator.get("username") or creator.get("full_name") or "Anonymous"
        ),
        score=score if score is not None else compute_score(votes),
        votes=total if total is not None else votes.total,
        votes_by_type=votes,
        comment_count=payload.get("commentCount") or payload.get("comment_count") or 0,
        tags=payload.get("tags") or [],
        created_at=payload.get("createdAt") or payload.get("created_at"),
        image=image,
        video=video,
        content=blocks,
        status_flag=payload.get("status_flag"),
        anonymous=bool(payload.get("anonymous")),
        creator_email=creator.get("email"),
        space_id=payload.get("space_id"),
    )


def decode_rpc_ideas(ideas_data: Any) -> List[Dict[str, Any]]:
    """rpc_get_filtered_ideas returns its ideas either as jsonb or as a JSON string."""
    if isinstance(ideas_data, str):
        try:
            ideas_data = json.loads(ideas_data)
        except ValueError:
            logger.error("rpc_get_filtered_ideas returned unparseable ideas payload")
            return []
    if not isinstance(ideas_data, list):
        logger.error(f"rpc_get_filtered_ideas ideas payload is not a list: {type(ideas_data).__name__}")
        return []
    return ideas_data


def get_field_value(idea: IdeaResponse, field: str) -> float:
    if field.startswith("votes_by_type.") or field.startswith("votesByType."):
        vote_type = field.split(".", 1)[1]
        return getattr(idea.votes_by_type, vote_type, 0) or 0
    if field in ("comment_count", "commentCount"):
        return idea.comment_count
    if field == "score":
        return idea.score
    if field == "votes":
        return idea.votes
    return 0


def compare_values(value: float, operator: str, target: float) -> bool:
    if operator == ">":
        return value > target
    if operator == "<":
        return value < target
    if operator == "=":
        return value == target
    if operator == ">=":
        return value >= target
    if operator == "<=":
        return value <= target
    return True


def apply_filter_conditions(ideas: List[IdeaResponse], conditions) -> List[IdeaResponse]:
    """Keep ideas matching every condition (objects or dicts with field/operator/value)."""
    def _get(cond, key):
        return cond.get(key) if isinstance(cond, dict) else getattr(cond, key)

    return [
        idea for idea in ideas
        if all(
            compare_values(get_field_value(idea, _get(c, "field")), _get(c, "operator"), _get(c, "value"))
            for c in conditions
        )
    ]


def sort_ideas_by_field(ideas: List[IdeaResponse], sort_field: str, sort_direction: str = "desc") -> List[IdeaResponse]:
    return sorted(
        ideas,
        key=lambda idea: get_field_value(idea, sort_field),
        reverse=sort_direction != "asc",
    )
