from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from mvo.modules.synthesis.schemas import SynthesisRequest, SynthesisResponse
from mvo.modules.synthesis.service import SynthesisService, SynthesisError
from mvo.modules.synthesis.parser import parse_synthesis
from mvo.core.dependencies import get_current_user
from datetime import datetime, timezone
from typing import Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["synthesis"])


def get_synthesis_service() -> SynthesisService:
    return SynthesisService()


@router.post("/idea-signals-synthesis", response_model=SynthesisResponse)
async def idea_signals_synthesis(
    request: SynthesisRequest,
    parsed: bool = Query(False, description="Also return the card view of each section"),
    user_data: Dict = Depends(get_current_user),
    service: SynthesisService = Depends(get_synthesis_service)
):
    """
    Decision-clarity synthesis of an idea's internal signals and market validation.
    """
    if not request.idea_id or request.idea_version_number is None or not request.title:
        raise HTTPException(status_code=400, detail="Missing ideaId, ideaVersionNumber, or title")
    try:
        synthesis = await run_in_threadpool(service.run, request)
    except SynthesisError as e:
        logger.error(f"Idea signals synthesis error: {e}")
        status_code = 429 if e.code == SynthesisError.AI_RATE_LIMIT_EXCEEDED else 500
        headers = {"Retry-After": str(e.retry_after_seconds)} if e.retry_after_seconds else None
        raise HTTPException(status_code=status_code, detail=str(e), headers=headers)
    return SynthesisResponse(
        synthesis=synthesis,
        timestamp=datetime.now(timezone.utc),
        parsed=parse_synthesis(synthesis) if parsed else None,
    )
