"""
Context Loader Utility for Chapter Quest backends

This module provides secure loading of context files for the generative
backends. Context files contain system prompts with security hardening against
prompt injection coming from child names or chore titles.
"""

from pathlib import Path
from functools import lru_cache


# Base directory for agents
AGENTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=10)
def load_context(agent_name: str) -> str:
    """
    Load context file for a specific agent.

    Args:
        agent_name: Name of the agent (writer)

    Returns:
        Content of the context file as string

    Raises:
        FileNotFoundError: If context file doesn't exist
    """
    context_paths = {
        "writer": AGENTS_DIR / "narrative" / "context_writer.txt",
    }

    if agent_name not in context_paths:
        raise ValueError(f"Unknown agent: {agent_name}. Available: {list(context_paths.keys())}")

    context_path = context_paths[agent_name]

    if not context_path.exists():
        raise FileNotFoundError(f"Context file not found: {context_path}")

    return context_path.read_text(encoding="utf-8")


def sanitize(text: str) -> str:
    """Escape XML-like tags so user data cannot close our isolation tags."""
    return text.replace("<", "&lt;").replace(">", "&gt;")


def wrap_user_input(user_input: str) -> str:
    """
    Wrap user-provided data (names, chore titles) in XML tags for input isolation.
    This helps the model distinguish between instructions and user data.
    """
    return f"<user_input>\n{sanitize(user_input)}\n</user_input>"


def wrap_chapter_instructions(instructions: str, context: str) -> tuple[str, str]:
    """
    Wrap chapter instructions and story context for the writer backends.

    Returns:
        Tuple of (wrapped_instructions, wrapped_context)
    """
    wrapped_inst = f"<chapter_instructions>\n{sanitize(instructions)}\n</chapter_instructions>"
    wrapped_ctx = f"<story_context>\n{sanitize(context)}\n</story_context>"

    return wrapped_inst, wrapped_ctx
