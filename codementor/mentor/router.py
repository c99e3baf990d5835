from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional
import logging

from codementor.mentor.ai_client import MentorClient, MentorServiceError
from codementor.mentor.service import generate_mentor_response
from codementor.auth.dependencies import get_current_user_id

router = APIRouter(tags=["AI Mentor"])
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    context: Optional[str] = None


def get_mentor_client() -> MentorClient:
    return MentorClient()


@router.post("/chat")
async def mentor_chat(
    data: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    client: MentorClient = Depends(get_mentor_client)
):
    try:
        response = await generate_mentor_response(data.message, data.context, client)
    except MentorServiceError as e:
        logger.error(f"Mentor chat failed for user {user_id}: {e.reason} ({e.upstream_status})")
        raise HTTPException(
            status_code=e.http_status,
            detail={"error": e.message, "reason": e.reason}
        )

    return {"response": response}
