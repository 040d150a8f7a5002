import logging
import re
from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from simulai.db.models.scenario import Scenario
from simulai.db.models.user import User
from simulai.db.repository.conversation import get_conversations, get_latest_conversation
from simulai.db.repository.report import create_report, get_latest_report
from simulai.db.repository.settings import get_settings
from simulai.services.monitoring import Monitoring
from simulai.services.scenario_services import can_manage
from simulai.services.settings_services import get_llm_client

logger = logging.getLogger(__name__)

EMOTIONS = ("neutral", "happy", "sad", "angry", "fearful", "disgusted", "surprised")

ASPECTS_PLACEHOLDER = "ASPECTS_PLACEHOLDER"

DEFAULT_PROMPT_TEMPLATE = (
    "Based on the conversation and facial expressions data, provide a detailed evaluation of the candidate. "
    "Analyze their responses, knowledge, communication style, and emotional states observed. "
    "Focus on the following aspects: ASPECTS_PLACEHOLDER. "
    "Give a score for each aspect from 0 to 100 at the end of the conversation. "
    "Example: Aspect 1: 80, Aspect 2: 70, Aspect 3: 90."
    "It is important to ALWAYS have the name of the aspect next to the score, example: Respectful: 95."
    "Show every aspect score in a new line."
    "Note: The given context is used for other IA to interact with the user."
)

NO_EXPRESSIONS = "No facial expression data available"

EMOTION_INTERPRETATIONS = {
    "neutral": "a balanced and composed demeanor",
    "happy": "comfort and positive engagement",
    "sad": "concern or uncertainty about some topics",
    "angry": "possible frustration with complex questions",
    "fearful": "anxiety about the interview process",
    "disgusted": "possible discomfort with certain topics",
    "surprised": "unexpected questions or realizations during the interview",
}


def _expressions_of(sample) -> dict:
    if isinstance(sample, dict):
        return sample.get("expressions") or {}
    return getattr(sample, "expressions", None) or {}


def _emotion_totals(samples: list) -> Dict[str, float]:
    totals = {emotion: 0.0 for emotion in EMOTIONS}
    for sample in samples:
        for emotion, value in _expressions_of(sample).items():
            #SH: Only the seven face-api emotions are reported
            if emotion in totals and isinstance(value, (int, float)):
                totals[emotion] += value
    return totals


#SH: Average every emotion over all samples, as a percentage with one decimal
def analyze_expressions(samples: Optional[list]) -> str:
    if not samples:
        return NO_EXPRESSIONS

    totals = _emotion_totals(samples)
    lines = ["Facial Expression Analysis:"]
    for emotion, total in totals.items():
        average = total / len(samples) * 100
        lines.append(f"- {emotion.capitalize()}: {average:.1f}%")
    return "\n".join(lines) + "\n"


def most_frequent_emotion(samples: Optional[list]) -> str:
    if not samples:
        return "neutral"
    totals = _emotion_totals(samples)
    # max keeps the first emotion on ties, neutral comes first
    return max(totals, key=lambda emotion: totals[emotion])


def interpret_emotion(emotion: str) -> str:
    return EMOTION_INTERPRETATIONS.get(emotion, "unclear emotional state")


def describe_predominant_emotion(samples: Optional[list]) -> str:
    if not samples:
        return ""
    emotion = most_frequent_emotion(samples)
    return (
        f"The candidate showed a predominant {emotion} expression during the interview, "
        f"which suggests {interpret_emotion(emotion)}."
    )


def _field(item, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


#SH: Flatten the transcripts of several conversations into chat messages, in order
def build_messages(conversations: Iterable) -> List[Dict[str, str]]:
    messages = []
    for conversation in conversations:
        for line in _field(conversation, "conversation", None) or []:
            role = _field(line, "role", "")
            messages.append({
                "role": "user" if role == "user" else "assistant",
                "content": _field(line, "message", "") or "",
            })
    return messages


def aspect_names(aspects: Optional[list]) -> List[str]:
    names = []
    for aspect in aspects or []:
        if isinstance(aspect, str):
            name = aspect
        else:
            name = _field(aspect, "label", "") or _field(aspect, "value", "")
        if name:
            names.append(name)
    return names


#SH: Admin templates may miss the placeholder, the scoring rule or the language rule
def normalize_prompt_template(template: Optional[str]) -> str:
    if not template or not template.strip():
        return DEFAULT_PROMPT_TEMPLATE

    if ASPECTS_PLACEHOLDER not in template:
        if re.search(r"aspects", template, re.IGNORECASE):
            template = re.sub(r"aspects", f"aspects: {ASPECTS_PLACEHOLDER}", template, count=1, flags=re.IGNORECASE)
        else:
            template += f"\n\nFocus on the following aspects: {ASPECTS_PLACEHOLDER}."

    if "score" not in template.lower():
        template += (
            "\n\nGive a score for each aspect from 0 to 100 at the end of the conversation. "
            "Example: Aspect 1: 80, Aspect 2: 70, Aspect 3: 90. Show every aspect score in a new line."
        )

    if "language" not in template:
        template += "\n\nThe report should be in the language of the conversation."
    return template


def build_system_prompt(
    context: Optional[str],
    aspects: Optional[list],
    expressions_analysis: str,
    conversation_count: int,
    prompt_template: Optional[str] = None,
) -> str:
    names = ", ".join(aspect_names(aspects))
    final_prompt = normalize_prompt_template(prompt_template).replace(ASPECTS_PLACEHOLDER, names)
    return (
        "You are an interview evaluator assistant. "
        "You'll evaluate the candidate based on the following criteria:\n\n"
        f"Context: {context or ''}\n\n"
        f"Aspects to evaluate: {names}\n\n"
        f"Facial expressions analysis: {expressions_analysis}\n\n"
        f"Number of conversations analyzed: {conversation_count}\n\n"
        f"{final_prompt}"
    )


#SH: The assistant's model and instructions drive a plain chat completion
async def run_assistant(client, assistant_id: str, messages: List[Dict[str, str]], system_prompt: str) -> str:
    assistant = await client.retrieve_assistant(assistant_id)
    system_content = system_prompt
    if assistant.get("instructions"):
        system_content = f"{assistant['instructions']}\n\n{system_prompt}"

    result = await client.chat(
        [{"role": "system", "content": system_content}, *messages],
        model=assistant.get("model") or None,
        temperature=0.7,
    )
    Monitoring.reports_generated.labels(client.provider).inc()
    return result["content"]


async def generate_report(
    db: AsyncSession,
    scenario: Scenario,
    user: User,
    assistant_id: str,
    conversation_ids: Optional[List[int]] = None,
    title: Optional[str] = None,
    save: bool = True,
    show_to_user: bool = False,
) -> dict:
    conversations = await get_conversations(db, scenario_id=scenario.id)
    if conversation_ids is not None:
        wanted = set(conversation_ids)
        unknown = wanted - {conversation.id for conversation in conversations}
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Conversations {sorted(unknown)} do not belong to this scenario"
            )
        conversations = [conversation for conversation in conversations if conversation.id in wanted]
    if not conversations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Select at least one conversation to generate a report"
        )

    samples = [sample for conversation in conversations for sample in (conversation.facial_expressions or [])]
    expressions = analyze_expressions(samples)
    if samples:
        expressions += describe_predominant_emotion(samples)
    app_settings = await get_settings(db)
    system_prompt = build_system_prompt(
        scenario.context,
        scenario.aspects,
        expressions,
        len(conversations),
        app_settings.get("report_prompt_template"),
    )

    client = await get_llm_client(db, "openai")
    logger.info(f"Generating report for scenario {scenario.id} from {len(conversations)} conversations")
    content = await run_assistant(client, assistant_id, build_messages(conversations), system_prompt)

    result = {
        "content": content,
        "conversations_ids": [conversation.id for conversation in conversations],
        "scores": extract_aspect_scores(content, scenario.aspects),
        "report": None,
    }
    if save:
        result["report"] = await create_report(
            db,
            scenario_id=scenario.id,
            title=title or f"{scenario.title} - Evaluation Report",
            content=content,
            conversations_ids=result["conversations_ids"],
            user_id=user.id,
            show_to_user=show_to_user,
        )
    return result


def _score_patterns(name: str) -> List[re.Pattern]:
    escaped = re.escape(name)
    return [
        re.compile(rf"{escaped}\s*:\s*(\d+)", re.IGNORECASE),
        re.compile(rf"{escaped}\s*-\s*(\d+)", re.IGNORECASE),
        re.compile(rf"{escaped}\s+(\d+)", re.IGNORECASE),
    ]


#SH: Scores follow the "Aspect: 85" convention the prompt asks for. Missing scores are 0
def extract_aspect_scores(text: Optional[str], aspects: Optional[list]) -> List[dict]:
    scores = []
    for aspect in aspects or []:
        if isinstance(aspect, str):
            label, value = aspect, ""
        else:
            label, value = _field(aspect, "label", "") or "", _field(aspect, "value", "") or ""

        patterns = []
        for name in (label, value):
            if name:
                patterns.extend(_score_patterns(name))

        score = 0
        for pattern in patterns:
            match = pattern.search(text or "")
            if match:
                score = min(100, int(match.group(1)))
                break
        scores.append({"aspect": label or value, "score": score})
    return scores


#SH: Latest saved report first, then the last message of the latest conversation.
#SH: Plain readers only see shared reports and their own conversations
async def get_aspect_scores(db: AsyncSession, scenario: Scenario, user: User) -> dict:
    manager = can_manage(user, scenario)
    report = await get_latest_report(db, scenario.id, only_visible=not manager)
    if report is not None:
        return {"source": "report", "source_id": report.id, "scores": extract_aspect_scores(report.content, scenario.aspects)}

    conversation = await get_latest_conversation(db, scenario.id, user_id=None if manager else user.id)
    lines = (conversation.conversation or []) if conversation else []
    if lines:
        text = _field(lines[-1], "message", "") or ""
        return {"source": "conversation", "source_id": conversation.id, "scores": extract_aspect_scores(text, scenario.aspects)}

    return {"source": None, "source_id": None, "scores": extract_aspect_scores("", scenario.aspects)}


def scores_as_dict(scores: List[dict]) -> Dict[str, int]:
    return {item["aspect"]: item["score"] for item in scores}
