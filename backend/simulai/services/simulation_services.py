import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from simulai.core.avatar import HeyGenClient
from simulai.core.config import settings
from simulai.db.models.scenario import Scenario
from simulai.db.models.user import User
from simulai.db.repository.conversation import get_elapsed_totals, get_session_state
from simulai.db.repository.settings import get_settings
from simulai.services.report_services import aspect_names
from simulai.services.session_timer import SessionTimer, TimerExpired
from simulai.services.settings_services import get_llm_client

logger = logging.getLogger(__name__)

PERSONA_PLACEHOLDER = "CONTEXT_FOR_PERSONA"

EVALUATOR_INSTRUCTIONS = (
    "IMPORTANT INSTRUCTIONS:\n"
    "1. You MUST ONLY respond in Spanish\n"
    "2. You should evaluate the candidate based on the aspects mentioned above\n"
    "3. Keep your responses professional and constructive\n"
    "4. Provide a numerical score from 0 to 100 for each aspect\n"
    "5. Format your response with one aspect score per line"
)


def time_limit_minutes(scenario: Scenario) -> int:
    return scenario.time_limit or settings.DEFAULT_TIME_LIMIT_MINUTES


#SH: Remaining seconds never go below zero
def compute_remaining_time(time_limit: int, total_elapsed: float, partial_elapsed: float = 0) -> float:
    return SessionTimer(time_limit * 60).reconcile(total_elapsed, partial_elapsed)


async def load_session_timer(db: AsyncSession, scenario: Scenario, user: User) -> tuple[SessionTimer, dict]:
    total_elapsed, count = await get_elapsed_totals(db, scenario.id)
    state = await get_session_state(db, scenario.id, user.id)
    partial = state.elapsed_time if state else 0.0
    time_limit = time_limit_minutes(scenario)

    timer = SessionTimer(time_limit * 60)
    timer.reconcile(total_elapsed, partial)
    return timer, {
        "time_limit": time_limit,
        "total_elapsed_time": total_elapsed,
        "partial_elapsed_time": partial,
        "remaining_time": timer.remaining,
        "conversations_count": count,
    }


async def get_elapsed_time(db: AsyncSession, scenario: Scenario, user: User) -> dict:
    _, timing = await load_session_timer(db, scenario, user)
    return timing


def build_knowledge_base(template: Optional[str], context: Optional[str]) -> str:
    if not template:
        return context or ""
    return template.replace(PERSONA_PLACEHOLDER, context or "")


#SH: Refuse to open an avatar stream once the scenario's time budget is spent
async def start_avatar_session(db: AsyncSession, scenario: Scenario, user: User) -> dict:
    timer, timing = await load_session_timer(db, scenario, user)
    try:
        timer.start()
    except TimerExpired as e:
        logger.info(f"Scenario {scenario.id}: no time remaining for user {user.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    app_settings = await get_settings(db)
    token = await HeyGenClient(app_settings.get("heygen_key")).create_streaming_token()
    return {
        "token": token,
        "avatar_name": scenario.interactive_avatar or "",
        "language": scenario.avatar_language or settings.DEFAULT_AVATAR_LANGUAGE,
        "knowledge_base": build_knowledge_base(app_settings.get("avatar_prompt_template"), scenario.context),
        "remaining_time": timing["remaining_time"],
    }


def build_evaluator_context(scenario: Scenario) -> str:
    names = ", ".join(aspect_names(scenario.aspects))
    lines = [
        "You are an AI evaluator reviewing a conversation.",
        "Here is your context:",
        f"- Scenario Title: {scenario.title or 'No title'}",
        f"- Description: {scenario.context or 'No context'}",
        f"- Aspects to evaluate: {names}" if names else "- No specific aspects to evaluate",
    ]
    if scenario.pdf_contents:
        lines.append(f"- Content from PDFs: {scenario.pdf_contents}")
    return "\n".join(lines) + "\n\n" + EVALUATOR_INSTRUCTIONS


async def process_final_message(db: AsyncSession, scenario: Scenario, message: str) -> str:
    client = await get_llm_client(db, scenario.assigned_ia)
    result = await client.chat(
        [
            {"role": "system", "content": build_evaluator_context(scenario)},
            {"role": "user", "content": message},
        ],
        model=scenario.assigned_ia_model or None,
        temperature=0.7,
        max_tokens=settings.EVALUATION_MAX_TOKENS,
    )
    logger.info(f"Final message of scenario {scenario.id} evaluated with {scenario.assigned_ia}")
    return result["content"]
