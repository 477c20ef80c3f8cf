"""
Chat Routes - API endpoint for conversational turns.

POST /chat takes the new message plus the caller's history and returns
the assistant's reply. The server keeps no conversation state; the
frontend sends its history on every request.
"""
from fastapi import APIRouter, Depends

from jarvis.core.exceptions import OrchestratorError, ValidationError
from jarvis.core.logging_config import get_logger
from jarvis.core.validators import trim_history, validate_history, validate_message
from jarvis.models.chat import ChatRequest, ChatResponse, ErrorResponse
from jarvis.services.orchestrator import ConversationOrchestrator, get_orchestrator

logger = get_logger(__name__)

router = APIRouter(
    prefix="/chat",
    tags=["Chat"],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid message"},
        500: {"model": ErrorResponse, "description": "Failed to process the turn"}
    }
)


@router.post(
    "",
    response_model=ChatResponse,
    summary="Send a message to the assistant",
    description="""
    Run one conversation turn.

    The assistant may search the web before answering. Send the prior
    conversation in `history` (oldest first, without the new message)
    to keep context across turns.
    """
)
async def send_message(
    request: ChatRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
) -> ChatResponse:
    """Validate input, run the turn, return the reply."""
    is_valid, message, error = validate_message(request.message)
    if not is_valid:
        raise ValidationError(error, field="message")

    history = [entry.model_dump(exclude_none=True) for entry in request.history]
    is_valid, error = validate_history(history)
    if not is_valid:
        raise ValidationError(error, field="history")
    history = trim_history(history)

    logger.info(
        f"Processing chat turn: history={len(history)}, message={message[:50]!r}"
    )

    try:
        result = await orchestrator.run_turn(message, history)
    except ValidationError:
        raise
    except Exception as e:
        logger.exception(f"Chat turn failed: {e}")
        raise OrchestratorError() from e

    logger.info(
        f"Chat turn finished: state={result.state.value}, "
        f"iterations={result.iterations}, tools={result.tools_executed}"
    )
    return ChatResponse(reply=result.reply)
