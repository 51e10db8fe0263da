PREVIEW_LIMIT = 500
TRUNCATION_MARKER = "...(truncado)"


def truncate_preview(text: str, limit: int = PREVIEW_LIMIT) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut."""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text
