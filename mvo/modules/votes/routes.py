from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from mvo.database.supabase_client import get_supabase
from mvo.modules.ideas.schemas import IdeaResponse
from mvo.modules.ideas.service import IdeaService
from mvo.modules.votes.schemas import (
    UserVotes, VoteToggleRequest, UserVoteResponse, BatchUserVotesRequest,
    VoteIntentRequest, VoteIntentResponse, VoteCountsResponse
)
from mvo.modules.votes.service import VoteService
from mvo.modules.votes.state import VoteCounts, VoteSelection, VoteState
from mvo.modules.votes.debounce import vote_coalescer
from mvo.core.dependencies import get_current_user, get_user_supabase
from supabase import Client
from typing import Dict

router = APIRouter(tags=["votes"])


def get_vote_service(supabase: Client = Depends(get_user_supabase)) -> VoteService:
    return VoteService(supabase)


def get_idea_service(supabase: Client = Depends(get_supabase)) -> IdeaService:
    return IdeaService(supabase)


@router.post("/ideas/{idea_id}/votes", response_model=IdeaResponse)
async def toggle_vote(
    idea_id: str,
    request: VoteToggleRequest,
    user_data: Dict = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service)
):
    """Toggle a use / dislike / pay vote and return the idea with fresh counts"""
    return service.toggle_vote(idea_id, request.vote_type)


@router.get("/ideas/{idea_id}/votes/me", response_model=UserVotes)
async def my_votes(
    idea_id: str,
    user_data: Dict = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service)
):
    return service.get_user_votes(idea_id, user_data["id"])


@router.get("/ideas/{idea_id}/votes/me/primary", response_model=UserVoteResponse)
async def my_primary_vote(
    idea_id: str,
    user_data: Dict = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service)
):
    return UserVoteResponse(idea_id=idea_id, vote_type=service.get_user_vote(idea_id, user_data["id"]))


@router.post("/votes/batch", response_model=Dict[str, UserVotes])
async def my_votes_for_ideas(
    request: BatchUserVotesRequest,
    user_data: Dict = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service)
):
    """Caller's votes for a page of ideas in one round trip"""
    return service.get_user_votes_for_ideas(request.idea_ids)


@router.post("/ideas/{idea_id}/vote-intent", response_model=VoteIntentResponse)
async def vote_intent(
    idea_id: str,
    request: VoteIntentRequest,
    user_data: Dict = Depends(get_current_user),
    service: VoteService = Depends(get_vote_service),
    idea_service: IdeaService = Depends(get_idea_service)
):
    """
    Register a like/dislike click. Rapid clicks are coalesced: the response carries
    the optimistic state, and one reconciled vote is written once clicks stop.
    """
    user_id = user_data["id"]
    key = (user_id, idea_id)
    debouncer = vote_coalescer.get(key)
    if debouncer is None:
        idea = idea_service.get_idea_by_id(idea_id)
        held = service.get_user_votes(idea_id, user_id)
        initial = VoteState(
            selection=VoteSelection.from_user_votes(held),
            counts=VoteCounts(**idea.votes_by_type.model_dump()),
        )

        async def sync(selection: VoteSelection):
            await run_in_threadpool(service.set_vote, idea_id, user_id, selection.as_user_votes())

        debouncer = vote_coalescer.get_or_create(key, sync, initial)

    state = debouncer.click(request.action)
    return VoteIntentResponse(
        idea_id=idea_id,
        votes=state.selection.as_user_votes(),
        counts=VoteCountsResponse(use=state.counts.use, dislike=state.counts.dislike, pay=state.counts.pay),
        pending=debouncer.in_flight,
    )
