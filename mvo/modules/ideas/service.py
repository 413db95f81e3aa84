from supabase import Client
from mvo.modules.ideas.schemas import (
    IdeaCreate, IdeaUpdate, IdeaResponse, FilteredIdeasResponse, UserIdeasAnalytics,
    IdeaVersionCreate, IdeaVersionResponse, AdvancedFilterRequest
)
from mvo.modules.ideas.mapping import (
    IDEA_SELECT, map_db_idea, map_rpc_idea, decode_rpc_ideas, sort_ideas_by_field
)
from mvo.modules.ideas.analytics import build_user_ideas_analytics
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("date", "popularity", "comments")


class IdeaService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _select(self):
        return self.supabase.table("ideas").select(IDEA_SELECT)

    def list_ideas(self, limit: Optional[int] = None, offset: int = 0, space_id: Optional[str] = None) -> List[IdeaResponse]:
        """List ideas, newest first"""
        try:
            query = self._select()
            if space_id:
                query = query.eq("space_id", space_id)
            query = query.order("created_at", desc=True)
            if limit:
                query = query.range(offset, offset + limit - 1)
            elif offset:
                query = query.offset(offset)
            result = query.execute()
            return [map_db_idea(row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_idea_by_id(self, idea_id: str) -> IdeaResponse:
        """Get idea by ID"""
        try:
            result = self._select().eq("id", idea_id).maybe_single().execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Idea not found")
            return map_db_idea(result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_featured_ideas(self, limit: int = 5) -> List[IdeaResponse]:
        """Ideas for the hero carousel: newest ideas that carry media"""
        ideas = self.list_ideas(limit=limit * 4)
        return [i for i in ideas if i.image or i.video][:limit]

    def get_trending_ideas(self, limit: int = 5) -> List[IdeaResponse]:
        """Non-validated ideas with media, ranked by votes + comments"""
        try:
            result = self._select()\
                .neq("status_flag", "validated")\
                .order("created_at", desc=True)\
                .limit(limit * 10)\
                .execute()
            ideas = [map_db_idea(row) for row in result.data or []]
            with_media = [i for i in ideas if i.video or i.image]
            with_media.sort(key=lambda i: i.votes + i.comment_count, reverse=True)
            return with_media[:limit]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_new_ideas(self, limit: int = 2) -> List[IdeaResponse]:
        return self.list_ideas(limit=limit)

    def get_ideas_with_filters(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        sort_by: str = "date",
        tags: Optional[List[str]] = None
    ) -> List[IdeaResponse]:
        """Tag filtering and popularity/comment sorting over a widened window of recent ideas"""
        if sort_by not in SORT_OPTIONS:
            raise HTTPException(status_code=400, detail=f"sort_by must be one of {', '.join(SORT_OPTIONS)}")
        if sort_by == "date" and not tags:
            fetch_limit = limit or 20
        else:
            fetch_limit = limit * 5 if limit else 100
        try:
            result = self._select()\
                .order("created_at", desc=True)\
                .limit(fetch_limit)\
                .execute()
            ideas = [map_db_idea(row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if tags:
            wanted = set(tags)
            ideas = [i for i in ideas if wanted.intersection(i.tags)]
        if sort_by == "popularity":
            ideas.sort(key=lambda i: i.score, reverse=True)
        elif sort_by == "comments":
            ideas.sort(key=lambda i: i.comment_count, reverse=True)
        end = offset + limit if limit else None
        return ideas[offset:end]

    def get_ideas_with_advanced_filters(self, filters: AdvancedFilterRequest) -> FilteredIdeasResponse:
        """Server-side search, numeric conditions and sorting through rpc_get_filtered_ideas"""
        try:
            conditions = [c.model_dump() for c in filters.filter_conditions]
            result = self.supabase.rpc("rpc_get_filtered_ideas", {
                "search_query": filters.search_query or None,
                "filter_conditions": conditions or None,
                "sort_field": filters.sort_field,
                "sort_direction": filters.sort_direction,
                "limit_int": filters.limit,
                "offset_int": filters.offset,
            }).execute()
        except Exception as e:
            logger.error(f"Error fetching filtered ideas: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            return FilteredIdeasResponse(ideas=[], total=0)
        first = result.data[0] if isinstance(result.data, list) else result.data
        ideas = [map_rpc_idea(item) for item in decode_rpc_ideas(first.get("ideas"))]
        if filters.sort_field in ("score", "votes", "comment_count") or filters.sort_field.startswith("votes_by_type."):
            # the RPC sorts its own columns; derived metrics are re-sorted here
            ideas = sort_ideas_by_field(ideas, filters.sort_field, filters.sort_direction)
        return FilteredIdeasResponse(ideas=ideas, total=first.get("total_count") or 0)

    def list_tags(self) -> List[str]:
        try:
            result = self.supabase.table("tags").select("name").execute()
            return [t["name"] for t in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_or_create_tag_id(self, name: str) -> str:
        existing = self.supabase.table("tags")\
            .select("id")\
            .eq("name", name)\
            .maybe_single()\
            .execute()
        if existing and existing.data:
            return existing.data["id"]
        created = self.supabase.table("tags").insert({"name": name}).execute()
        if not created.data:
            raise HTTPException(status_code=500, detail=f"Failed to create tag {name}")
        return created.data[0]["id"]

    def _link_tags(self, idea_id: str, tags: List[str]) -> None:
        seen = set()
        for name in tags:
            name = name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            tag_id = self._get_or_create_tag_id(name)
            self.supabase.table("idea_tags").insert({
                "idea_id": idea_id,
                "tag_id": tag_id
            }).execute()

    def create_idea(self, idea_data: IdeaCreate, user_id: str) -> IdeaResponse:
        """Create a new idea and attach its tags"""
        try:
            result = self.supabase.table("ideas").insert({
                "creator_id": user_id,
                "title": idea_data.title,
                "content": {
                    "blocks": idea_data.content,
                    "hero_image": idea_data.image,
                    "hero_video": idea_data.video,
                    "description": idea_data.description,
                },
                "status_flag": idea_data.status_flag or "new",
                "anonymous": idea_data.anonymous,
                "space_id": idea_data.space_id,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create idea")

            idea_id = result.data[0]["id"]
            if idea_data.tags:
                self._link_tags(idea_id, idea_data.tags)
            logger.info(f"Idea {idea_id} created by {user_id}")
            return self.get_idea_by_id(idea_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_idea(self, idea_id: str, idea_data: IdeaUpdate) -> IdeaResponse:
        """Update idea; content fields are merged with the stored idea"""
        try:
            update_data: Dict[str, Any] = {}
            if idea_data.title is not None:
                update_data["title"] = idea_data.title
            if idea_data.status_flag is not None:
                update_data["status_flag"] = idea_data.status_flag
            if idea_data.anonymous is not None:
                update_data["anonymous"] = idea_data.anonymous

            fields = idea_data.model_fields_set
            if fields & {"content", "image", "video", "description"}:
                current = self.get_idea_by_id(idea_id)
                update_data["content"] = {
                    "blocks": idea_data.content if idea_data.content is not None else (current.content or []),
                    "hero_image": idea_data.image if "image" in fields else current.image,
                    "hero_video": idea_data.video if "video" in fields else current.video,
                    "description": idea_data.description if "description" in fields else current.description,
                }

            if update_data:
                result = self.supabase.table("ideas")\
                    .update(update_data)\
                    .eq("id", idea_id)\
                    .execute()
                if not result.data:
                    raise HTTPException(status_code=404, detail="Idea not found")

            if idea_data.tags is not None:
                self.supabase.table("idea_tags")\
                    .delete()\
                    .eq("idea_id", idea_id)\
                    .execute()
                self._link_tags(idea_id, idea_data.tags)

            return self.get_idea_by_id(idea_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_idea(self, idea_id: str) -> bool:
        """Delete idea (votes, tags, comments and versions cascade)"""
        try:
            result = self.supabase.table("ideas")\
                .delete()\
                .eq("id", idea_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_ideas(self, user_id: str, limit: Optional[int] = None, offset: int = 0) -> List[IdeaResponse]:
        """Ideas created by a user, newest first"""
        try:
            query = self._select()\
                .eq("creator_id", user_id)\
                .order("created_at", desc=True)
            if limit:
                query = query.range(offset, offset + limit - 1)
            result = query.execute()
            return [map_db_idea(row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_ideas_analytics(self, user_id: str) -> UserIdeasAnalytics:
        return build_user_ideas_analytics(self.get_user_ideas(user_id))

    def list_versions(self, idea_id: str) -> List[IdeaVersionResponse]:
        try:
            result = self.supabase.table("idea_versions")\
                .select("*")\
                .eq("idea_id", idea_id)\
                .order("version_number", desc=True)\
                .execute()
            return [IdeaVersionResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_version(self, idea_id: str, version_data: IdeaVersionCreate) -> IdeaVersionResponse:
        """Snapshot the idea into a new numbered version through create_idea_version"""
        try:
            result = self.supabase.rpc("create_idea_version", {
                "p_idea_id": idea_id,
                "p_title": version_data.title,
                "p_content": version_data.content,
            }).execute()
            row = result.data[0] if isinstance(result.data, list) and result.data else result.data
            if not row:
                raise HTTPException(status_code=500, detail="Failed to create idea version")
            logger.info(f"Created version {row.get('version_number')} for idea {idea_id}")
            return IdeaVersionResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_active_version(self, idea_id: str, version_id: str) -> IdeaVersionResponse:
        try:
            result = self.supabase.rpc("set_active_version", {
                "p_idea_id": idea_id,
                "p_version_id": version_id,
            }).execute()
            row = result.data[0] if isinstance(result.data, list) and result.data else result.data
            if not row:
                raise HTTPException(status_code=404, detail="Version not found")
            return IdeaVersionResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
