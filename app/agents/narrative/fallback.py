"""Hand-written chapters used when no backend produced a usable one."""

from app.agents.story_types import GenerationRequest
from app.db.models import Chapter, utcnow

CURATED_GENERATOR = "curated"

CURATED_STORIES = {
    "magical_forest": {
        "title": "Chapter {number}: The Helpful Fairy",
        "content": (
            "In the magical forest, {name} discovered a tiny fairy who needed help organizing her flower garden. "
            "The fairy was so grateful for {name}'s help that she granted them a special wish. "
            "{name} wished for all children to be happy and helpful, just like they had been today. "
            "The fairy smiled and sprinkled magic dust, making the wish come true. "
            "From that day forward, {name} knew that helping others was the greatest magic of all."
        ),
    },
    "space_adventure": {
        "title": "Chapter {number}: The Friendly Alien",
        "content": (
            "During their space adventure, {name} met a friendly alien named Zyx who was having trouble keeping "
            "their spaceship clean. {name} helped Zyx organize the control room and learned about different "
            "planets in the galaxy. Zyx was so impressed by {name}'s helpfulness that they gave them a special "
            "space badge. {name} felt proud to be a helpful space explorer and promised to always lend a hand "
            "when others needed it."
        ),
    },
    "underwater_kingdom": {
        "title": "Chapter {number}: The Mermaid's Treasure",
        "content": (
            "In the underwater kingdom, {name} helped a young mermaid named Coral organize her seashell collection. "
            "Coral had so many beautiful shells but couldn't find the ones she needed. {name} carefully sorted the "
            "shells by color and size, making Coral's collection neat and organized. As a thank you, Coral shared "
            "a magical pearl with {name}, which glowed softly and reminded them that helping others makes the "
            "whole ocean a brighter place."
        ),
    },
}
DEFAULT_THEME = "magical_forest"


def curated_chapter(request: GenerationRequest) -> Chapter:
    """Build the curated chapter for the request's theme. No network, no parsing."""
    story = CURATED_STORIES.get(request.world_theme, CURATED_STORIES[DEFAULT_THEME])
    now = utcnow()
    return Chapter(
        child_id=request.child_id,
        world_theme=request.world_theme,
        chapter_number=request.chapter_number,
        title=story["title"].format(number=request.chapter_number),
        content=story["content"].format(name=request.child_name),
        generated_by=CURATED_GENERATOR,
        fallback_used=True,
        is_read=False,
        unlocked_at=now,
        created_at=now,
    )
