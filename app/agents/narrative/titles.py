MAX_TITLE_LENGTH = 70


def default_title(chapter_number: int) -> str:
    return f"Chapter {chapter_number}: A New Adventure"


def extract_title(content: str, chapter_number: int) -> str:
    """
    Pull the chapter title out of generated text.

    Backends are asked to open with "Chapter N: [Title]". The first line is
    accepted when it is short and looks like a heading (mentions "chapter" or
    has a colon); otherwise a generic title is synthesized.
    """
    if not content:
        return default_title(chapter_number)

    first_line = content.strip().split("\n")[0]
    # Markdown headings and bold markers
    first_line = first_line.strip().lstrip("#").strip().strip("*_").strip()

    if first_line and len(first_line) < MAX_TITLE_LENGTH:
        if "chapter" in first_line.lower() or ":" in first_line:
            return first_line

    return default_title(chapter_number)

