"""Exceptions raised inside the chapter generation pipeline."""


class ProfileNotFoundError(LookupError):
    """The Profile Store has no child with the requested id."""


class BackendError(RuntimeError):
    """A generative backend call failed (network, malformed response, ...)."""


class EmptyContentError(BackendError):
    """The backend answered but produced no usable text."""


class ContentRejectedError(BackendError):
    """Generated text did not pass the content safety filter."""

    def __init__(self, backend_name: str, violations: list[str]):
        self.backend_name = backend_name
        self.violations = violations
        super().__init__(f"{backend_name} output rejected by safety filter: {', '.join(violations) or 'moderation'}")


class BackendExhaustedError(BackendError):
    """Every model/API-version option inside one backend failed."""

    def __init__(self, backend_name: str, last_error: Exception = None):
        self.backend_name = backend_name
        self.last_error = last_error
        reason = f"{type(last_error).__name__}: {last_error}" if last_error else "no options configured"
        super().__init__(f"{backend_name} exhausted all options ({reason})")


class ChapterNumberConflict(RuntimeError):
    """Another chapter already holds this (child, theme, number) slot."""

    def __init__(self, child_id: int, world_theme: str, chapter_number: int):
        self.child_id = child_id
        self.world_theme = world_theme
        self.chapter_number = chapter_number
        super().__init__(f"Chapter {chapter_number} already exists for child {child_id} in {world_theme}")
