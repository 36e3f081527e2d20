"""
Continuity context builder.

Turns a child profile, the chores they just finished and the tail of the
previous chapter into a backend-agnostic GenerationRequest, then renders that
request as prompt text for the writer backends.
"""
from datetime import datetime
from typing import List, Optional

from app.agents.context_loader import wrap_chapter_instructions, wrap_user_input
from app.agents.story_types import ChildProfile, GenerationRequest

DEFAULT_EVENING_HOUR = 18

WORLD_DESCRIPTIONS = {
    "magical_forest": "a magical forest filled with talking animals, friendly fairies, and enchanted trees",
    "space_adventure": "an exciting space adventure with friendly aliens, spaceships, and distant planets",
    "underwater_kingdom": "a beautiful underwater kingdom with mermaids, sea creatures, and coral castles",
}
DEFAULT_WORLD = "magical_forest"

# Age tiers: vocabulary complexity + sentence/paragraph length
AGE_GUIDANCE = {
    "4-6": "Use simple words and short sentences of under ten words. Keep paragraphs to two or three sentences.",
    "7-8": "Use slightly more complex language with a few fun new words. Keep paragraphs to three or four sentences.",
    "9-10": "Use engaging, descriptive language with richer vocabulary. Paragraphs can run four or five sentences.",
}
DEFAULT_AGE_BRACKET = "9-10"

EVENING_LENGTH = (
    "Length: 300-500 words. This is a bedtime chapter: slow the pace as the story goes on "
    "and close with a calming, cozy resolution that helps {name} wind down for sleep."
)
DAYTIME_LENGTH = (
    "Length: 100-200 words. Keep it a short, punchy update full of energy "
    "that {name} can read in a couple of minutes."
)

ORIGIN_TASK_FRAMING = "Start the story by celebrating the real-world tasks {name} completed: {tasks}."
CONTINUATION_TASK_FRAMING = "Weave into this chapter the real-world tasks {name} just completed: {tasks}."
BEGIN_ADVENTURE = "Begin the adventure: introduce {name} and the world they are about to explore."
CONTINUE_ADVENTURE = "Continue the adventure from where the last chapter ended."

CONTINUATION_NOTICE = (
    "This chapter continues an ongoing story. Do not re-introduce {name} "
    "and do not restart the setting; pick up right where the previous chapter stopped."
)
ORIGIN_NOTICE = "This is the very first chapter of {name}'s story."


def is_evening(now: datetime, evening_hour: int = DEFAULT_EVENING_HOUR) -> bool:
    return now.hour >= evening_hour


def build_request(
    profile: ChildProfile,
    completed_task_titles: List[str],
    continuity_tail: Optional[str],
    chapter_number: int,
    now: Optional[datetime] = None,
    evening_hour: int = DEFAULT_EVENING_HOUR,
) -> GenerationRequest:
    """Assemble the generation request. Pure apart from reading the clock when `now` is omitted."""
    now = now or datetime.now()
    name = profile.name
    tasks = [t for t in completed_task_titles if t and t.strip()]
    is_continuation = bool(continuity_tail)
    evening = is_evening(now, evening_hour)

    if tasks:
        framing = CONTINUATION_TASK_FRAMING if is_continuation else ORIGIN_TASK_FRAMING
        task_framing = framing.format(name=name, tasks=", ".join(tasks))
    else:
        task_framing = (CONTINUE_ADVENTURE if is_continuation else BEGIN_ADVENTURE).format(name=name)

    length_guidance = (EVENING_LENGTH if evening else DAYTIME_LENGTH).format(name=name)

    return GenerationRequest(
        child_id=profile.child_id,
        child_name=name,
        age_bracket=profile.age_bracket,
        world_theme=profile.world_theme,
        chapter_number=chapter_number,
        completed_tasks=tasks,
        continuity_tail=continuity_tail or None,
        is_continuation=is_continuation,
        is_evening=evening,
        world_description=WORLD_DESCRIPTIONS.get(profile.world_theme, WORLD_DESCRIPTIONS[DEFAULT_WORLD]),
        age_guidance=AGE_GUIDANCE.get(profile.age_bracket, AGE_GUIDANCE[DEFAULT_AGE_BRACKET]),
        length_guidance=length_guidance,
        task_framing=task_framing,
    )


def render_prompt(request: GenerationRequest) -> str:
    """Render the request as the user prompt shared by every backend."""
    name = request.child_name
    notice = (CONTINUATION_NOTICE if request.is_continuation else ORIGIN_NOTICE).format(name=name)

    instructions = "\n".join([
        f"Write chapter {request.chapter_number} of a serialized story for {name}, "
        f"a {request.age_bracket}-year-old child.",
        f"Setting: {request.world_description}",
        notice,
        request.task_framing,
        "",
        "Requirements:",
        f"- Make {name} the main character",
        "- Keep it positive, educational, and safe",
        f"- {request.length_guidance}",
        f"- {request.age_guidance}",
        "- End with a sense of accomplishment or a lesson learned",
        "- No violence, scary elements, or inappropriate content",
        f"- First line must be: Chapter {request.chapter_number}: [Title]",
    ])

    context = f"Previous chapter excerpt: {request.continuity_tail}..." if request.continuity_tail else "No previous chapter."
    wrapped_instructions, wrapped_context = wrap_chapter_instructions(instructions, context)

    child_data = wrap_user_input(f"Child name: {name}\nCompleted tasks: {', '.join(request.completed_tasks) or 'none'}")

    return f"""
{child_data}

{wrapped_instructions}

{wrapped_context}

Write the story chapter now.
""".strip()
