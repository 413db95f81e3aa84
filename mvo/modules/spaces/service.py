from supabase import Client
from mvo.modules.spaces.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamMembershipResponse, MemberAdd, MembershipUpdate,
    SpaceCreate, SpaceUpdate, SpaceResponse, SpaceWithTeamResponse, SpaceMembershipResponse,
    MembershipRole, MembershipStatus, SpaceVisibility
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SPACE_ADMIN_ROLES = (MembershipRole.ADMIN.value, MembershipRole.MODERATOR.value)

SPACE_WITH_TEAM_SELECT = """
    *,
    teams!enterprise_spaces_team_id_fkey (
        id,
        name,
        description,
        avatar_media_id
    )
"""


def _is_conflict(error: Exception) -> bool:
    """True for unique-violation style errors coming back from PostgREST"""
    code = str(getattr(error, "code", "") or "")
    if code in ("23505", "409"):
        return True
    message = str(error).lower()
    return "duplicate" in message or "already exists" in message


def _flatten_member(row: Dict[str, Any]) -> Dict[str, Any]:
    user = row.pop("users", None) or {}
    row["username"] = user.get("username")
    row["full_name"] = user.get("full_name")
    return row


def _compact_settings(settings: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return settings or None


class SpaceService:
    """Teams, enterprise spaces and their memberships"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Teams

    def create_team(self, team_data: TeamCreate, creator_id: Optional[str] = None) -> TeamResponse:
        """Create a team; the creator becomes its first admin"""
        try:
            result = self.supabase.table("teams").insert(team_data.model_dump()).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create team")
            team = TeamResponse(**result.data[0])
            if creator_id:
                self.add_team_member(team.id, MemberAdd(user_id=creator_id, role=MembershipRole.ADMIN))
            logger.info(f"Team {team.id} created by {creator_id}")
            return team
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating team: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_teams(self) -> List[TeamResponse]:
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [TeamResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_team_by_id(self, team_id: str) -> TeamResponse:
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("id", team_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Team not found")
            return TeamResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_teams(self, user_id: str) -> List[TeamResponse]:
        """Teams where the user holds an active membership"""
        try:
            result = self.supabase.table("team_memberships")\
                .select("teams!team_memberships_team_id_fkey (id, name, description, avatar_media_id, created_at, updated_at)")\
                .eq("user_id", user_id)\
                .eq("status", MembershipStatus.ACTIVE.value)\
                .execute()
            return [TeamResponse(**row["teams"]) for row in result.data or [] if row.get("teams")]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_team(self, team_id: str, team_data: TeamUpdate) -> TeamResponse:
        try:
            update_data = team_data.model_dump(exclude_unset=True)
            if not update_data:
                return self.get_team_by_id(team_id)
            result = self.supabase.table("teams")\
                .update(update_data)\
                .eq("id", team_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Team not found")
            return TeamResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_team_member(self, team_id: str, member: MemberAdd) -> TeamMembershipResponse:
        try:
            result = self.supabase.table("team_memberships").insert({
                "team_id": team_id,
                "user_id": member.user_id,
                "role": member.role.value,
                "status": MembershipStatus.ACTIVE.value,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add team member")
            return TeamMembershipResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if _is_conflict(e):
                raise HTTPException(status_code=409, detail="User is already a member of this team")
            raise HTTPException(status_code=500, detail=str(e))

    def list_team_members(self, team_id: str) -> List[TeamMembershipResponse]:
        try:
            result = self.supabase.table("team_memberships")\
                .select("*, users!team_memberships_user_id_fkey (username, full_name)")\
                .eq("team_id", team_id)\
                .order("created_at", desc=True)\
                .execute()
            return [TeamMembershipResponse(**_flatten_member(row)) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_team_member(self, team_id: str, user_id: str, updates: MembershipUpdate) -> TeamMembershipResponse:
        try:
            result = self.supabase.table("team_memberships")\
                .update(updates.model_dump(exclude_none=True, mode="json"))\
                .eq("team_id", team_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Team membership not found")
            return TeamMembershipResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_team_role(self, team_id: str, user_id: str) -> Optional[MembershipRole]:
        result = self.supabase.table("team_memberships")\
            .select("role")\
            .eq("team_id", team_id)\
            .eq("user_id", user_id)\
            .eq("status", MembershipStatus.ACTIVE.value)\
            .execute()
        if not result.data:
            return None
        return MembershipRole(result.data[0]["role"])

    def is_team_member(self, team_id: str, user_id: str) -> bool:
        return self.get_user_team_role(team_id, user_id) is not None

    def is_team_admin(self, team_id: str, user_id: str) -> bool:
        role = self.get_user_team_role(team_id, user_id)
        return role is not None and role.value in SPACE_ADMIN_ROLES

    # Spaces

    def create_space(self, space_data: SpaceCreate) -> SpaceResponse:
        try:
            insert_data = space_data.model_dump(mode="json")
            insert_data["settings"] = _compact_settings(insert_data.get("settings"))
            result = self.supabase.table("enterprise_spaces").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create space")
            return SpaceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_spaces(self, team_id: Optional[str] = None) -> List[SpaceResponse]:
        try:
            query = self.supabase.table("enterprise_spaces").select("*")
            if team_id:
                query = query.eq("team_id", team_id)
            result = query.order("created_at", desc=True).execute()
            return [SpaceResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _with_counts(self, row: Dict[str, Any]) -> SpaceWithTeamResponse:
        """Attach team and counts; members are direct members plus team members, counted once"""
        space = dict(row)
        team = space.pop("teams", None) or space.pop("team", None)
        direct = self.supabase.table("space_memberships")\
            .select("user_id")\
            .eq("space_id", space["id"])\
            .eq("status", MembershipStatus.ACTIVE.value)\
            .execute()
        member_ids = {m["user_id"] for m in direct.data or [] if m.get("user_id")}
        if space.get("team_id"):
            team_members = self.supabase.table("team_memberships")\
                .select("user_id")\
                .eq("team_id", space["team_id"])\
                .eq("status", MembershipStatus.ACTIVE.value)\
                .execute()
            member_ids.update(m["user_id"] for m in team_members.data or [] if m.get("user_id"))
        ideas = self.supabase.table("ideas")\
            .select("id", count="exact")\
            .eq("space_id", space["id"])\
            .execute()
        return SpaceWithTeamResponse(
            **space,
            team=TeamResponse(**team) if team else None,
            member_count=len(member_ids),
            idea_count=ideas.count or 0,
        )

    def get_visible_spaces(self, user_id: Optional[str] = None) -> List[SpaceWithTeamResponse]:
        """Public spaces plus private spaces the user is an active member of"""
        try:
            public = self.supabase.table("enterprise_spaces")\
                .select(SPACE_WITH_TEAM_SELECT)\
                .eq("visibility", SpaceVisibility.PUBLIC.value)\
                .order("created_at", desc=True)\
                .execute()
            rows = list(public.data or [])
            if user_id:
                try:
                    memberships = self.supabase.table("space_memberships")\
                        .select(f"enterprise_spaces!space_memberships_space_id_fkey ({SPACE_WITH_TEAM_SELECT})")\
                        .eq("user_id", user_id)\
                        .eq("status", MembershipStatus.ACTIVE.value)\
                        .execute()
                    rows.extend(m["enterprise_spaces"] for m in memberships.data or [] if m.get("enterprise_spaces"))
                except Exception as e:
                    logger.warning(f"Could not load member spaces for {user_id}: {e}")
            unique = {}
            for row in rows:
                unique.setdefault(row["id"], row)
            return [self._with_counts(row) for row in unique.values()]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_space_by_id(self, space_id: str) -> SpaceWithTeamResponse:
        try:
            result = self.supabase.table("enterprise_spaces")\
                .select(SPACE_WITH_TEAM_SELECT)\
                .eq("id", space_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Space not found")
            return self._with_counts(result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_space(self, space_id: str, space_data: SpaceUpdate) -> SpaceResponse:
        """Caller must already be a space admin; empty settings are stored as null"""
        try:
            update_data = space_data.model_dump(exclude_unset=True, mode="json")
            if "settings" in update_data:
                update_data["settings"] = _compact_settings(update_data["settings"])
            if not update_data:
                return self.get_space_by_id(space_id)
            result = self.supabase.table("enterprise_spaces")\
                .update(update_data)\
                .eq("id", space_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Space not found or update failed")
            return SpaceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating space {space_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_space(self, space_id: str) -> bool:
        try:
            result = self.supabase.table("enterprise_spaces")\
                .delete()\
                .eq("id", space_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.error(f"Error deleting space {space_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    # Space memberships

    def _get_space_membership(self, space_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("space_memberships")\
            .select("*")\
            .eq("space_id", space_id)\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data

    def add_space_member(self, space_id: str, member: MemberAdd) -> SpaceMembershipResponse:
        """Idempotent: returns an existing active membership and reactivates an inactive one"""
        try:
            existing = self._get_space_membership(space_id, member.user_id)
            if existing and existing.get("status") == MembershipStatus.ACTIVE.value:
                return SpaceMembershipResponse(**existing)
            if existing:
                result = self.supabase.table("space_memberships")\
                    .update({"status": MembershipStatus.ACTIVE.value, "role": member.role.value})\
                    .eq("space_id", space_id)\
                    .eq("user_id", member.user_id)\
                    .execute()
                return SpaceMembershipResponse(**result.data[0])
            try:
                result = self.supabase.table("space_memberships").insert({
                    "space_id": space_id,
                    "user_id": member.user_id,
                    "role": member.role.value,
                    "status": MembershipStatus.ACTIVE.value,
                }).execute()
            except Exception as e:
                if not _is_conflict(e):
                    raise
                # a concurrent request created it first
                existing = self._get_space_membership(space_id, member.user_id)
                if existing is None:
                    raise
                return SpaceMembershipResponse(**existing)
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add space member")
            return SpaceMembershipResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding {member.user_id} to space {space_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_space_members(self, space_id: str) -> List[SpaceMembershipResponse]:
        try:
            result = self.supabase.table("space_memberships")\
                .select("*, users!space_memberships_user_id_fkey (username, full_name)")\
                .eq("space_id", space_id)\
                .order("created_at", desc=True)\
                .execute()
            return [SpaceMembershipResponse(**_flatten_member(row)) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_space_member(self, space_id: str, user_id: str, updates: MembershipUpdate) -> SpaceMembershipResponse:
        try:
            result = self.supabase.table("space_memberships")\
                .update(updates.model_dump(exclude_none=True, mode="json"))\
                .eq("space_id", space_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Space membership not found")
            return SpaceMembershipResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_space_role(self, space_id: str, user_id: str) -> Optional[MembershipRole]:
        """Role of an active membership, None otherwise (lookup errors count as no role)"""
        try:
            membership = self._get_space_membership(space_id, user_id)
        except Exception as e:
            logger.error(f"Error getting space role: {e}")
            return None
        if not membership or membership.get("status") != MembershipStatus.ACTIVE.value:
            return None
        return MembershipRole(membership["role"])

    def is_space_admin(self, space_id: str, user_id: str) -> bool:
        role = self.get_user_space_role(space_id, user_id)
        return role is not None and role.value in SPACE_ADMIN_ROLES

    def is_space_member(self, space_id: str, user_id: str) -> bool:
        """Direct active members, or active members of the owning team"""
        if self.get_user_space_role(space_id, user_id) is not None:
            return True
        try:
            result = self.supabase.table("enterprise_spaces")\
                .select("team_id")\
                .eq("id", space_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data or not result.data.get("team_id"):
                return False
            return self.is_team_member(result.data["team_id"], user_id)
        except Exception as e:
            logger.error(f"Error checking team membership for space {space_id}: {e}")
            return False
