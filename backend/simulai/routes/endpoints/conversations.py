import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.responses import success_response, error_response
from simulai.db.database import get_db
from simulai.db.models.user import User, ROLE_ADMIN, ROLE_USER
from simulai.db.repository.conversation import save_conversation, get_conversations, get_conversation
from simulai.db.repository.scenario import get_scenario
from simulai.dependencies.auth import get_current_user
from simulai.models.conversation import ConversationCreate, ConversationOut
from simulai.services.scenario_services import load_scenario, can_manage

#SH: Conversations live under their scenario
router = APIRouter(
    prefix="/scenarios",
    tags=["conversations"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

#SH: All conversations the current user may see (declared before /scenarios/{id})
@router.get("/conversations")
async def read_all_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == ROLE_USER:
        conversations = await get_conversations(db, user_id=current_user.id)
    elif current_user.role == ROLE_ADMIN:
        conversations = await get_conversations(db)
    else:
        conversations = []
        scenarios = {}
        for conversation in await get_conversations(db):
            if conversation.scenario_id not in scenarios:
                scenarios[conversation.scenario_id] = await get_scenario(db, conversation.scenario_id)
            scenario = scenarios[conversation.scenario_id]
            if scenario and can_manage(current_user, scenario):
                conversations.append(conversation)
    return success_response(
        "Conversations retrieved successfully",
        data=[ConversationOut.model_validate(c) for c in conversations],
    )

@router.post("/{scenario_id}/conversations", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    scenario_id: int,
    payload: ConversationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    user_id = payload.user_id or current_user.id
    if user_id != current_user.id and current_user.role == ROLE_USER:
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)

    conversation = await save_conversation(
        db,
        scenario_id=scenario.id,
        user_id=user_id,
        conversation=[message.model_dump() for message in payload.conversation],
        facial_expressions=[sample.model_dump() for sample in payload.facial_expressions],
        elapsed_time=payload.elapsed_time,
    )
    logger.info(f"Conversation {conversation.id} saved for scenario {scenario.id} ({conversation.elapsed_time:.0f}s)")
    return success_response(
        "Conversation saved successfully",
        ConversationOut.model_validate(conversation),
        status_code=status.HTTP_201_CREATED,
    )

@router.get("/{scenario_id}/conversations")
async def read_conversations(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    user_id = None if can_manage(current_user, scenario) else current_user.id
    conversations = await get_conversations(db, scenario_id=scenario.id, user_id=user_id)
    return success_response(
        "Conversations retrieved successfully",
        data=[ConversationOut.model_validate(c) for c in conversations],
    )

@router.get("/{scenario_id}/conversations/{conversation_id}")
async def read_conversation(
    scenario_id: int,
    conversation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    conversation = await get_conversation(db, scenario.id, conversation_id)
    if not conversation:
        return error_response("Conversation not found", http_status=status.HTTP_404_NOT_FOUND)
    if conversation.user_id != current_user.id and not can_manage(current_user, scenario):
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)
    return success_response("Conversation retrieved successfully", ConversationOut.model_validate(conversation))
