from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.agent.completion import CompletionOrchestrator, get_orchestrator
from app.api.chat import schemas, services
from app.config import settings
from app.db.session import get_db

router = APIRouter()

# ---------------------------------------------------
# 🚀 Send Message
# ---------------------------------------------------

@router.post("/messages", response_model=schemas.ChatResponse)
def send_message(
    payload: schemas.SendMessageRequest,
    db: Session = Depends(get_db),
    orchestrator: CompletionOrchestrator = Depends(get_orchestrator),
):
    user_message, bot_response = services.send_message(
        db,
        payload.content,
        orchestrator,
        history_window=settings.CHAT_HISTORY_WINDOW,
    )
    return schemas.ChatResponse(
        user_message=schemas.MessageResponse.model_validate(user_message),
        bot_response=schemas.MessageResponse.model_validate(bot_response),
    )


# ---------------------------------------------------
# 📜 Recent Messages
# ---------------------------------------------------

@router.get("/messages", response_model=List[schemas.MessageResponse])
def get_recent_messages(
    limit: int = Query(default=services.DEFAULT_RECENT_LIMIT),
    db: Session = Depends(get_db),
):
    """
    Newest first; the UI reverses for display.

    A negative limit is a ValidationError (400) like any other bad input;
    a non-integer limit fails FastAPI request parsing (422).
    """
    return services.list_recent(db, limit=limit)
