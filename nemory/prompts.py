"""LLM prompts and style presets for workspace summaries."""

STYLE_SYSTEM_PROMPTS: dict[str, str] = {
    "executive": (
        "You are an executive assistant creating concise, high-level summaries for busy "
        "professionals. Focus on key decisions, outcomes, and strategic points."
    ),
    "detailed": (
        "You are a thorough analyst creating comprehensive summaries that preserve important "
        "details, context, and nuance while remaining well organized."
    ),
    "bullet_points": (
        "You are a note-taking specialist who organizes information into clear, scannable "
        "bullet points with logical hierarchy."
    ),
    "action_items": (
        "You are a productivity expert focused on extracting actionable items, next steps, "
        "and follow-ups from content."
    ),
}

LENGTH_INSTRUCTIONS: dict[str, str] = {
    "short": "Keep it brief: at most 5 bullet points or about 120 words.",
    "medium": "Aim for roughly 200-300 words.",
    "long": "Be thorough, up to about 500 words, grouped by topic.",
}

CONTEXT_INSTRUCTIONS: dict[str, str] = {
    "normal": "The notes below were edited within the last {window_days} days.",
    "extended_window": (
        "Nothing changed in the user's usual window, so the notes below cover the last "
        "{window_days} days instead. Mention briefly that activity has been light."
    ),
    "most_recent_fallback": (
        "There were no edits in the last 30 days. The notes below are simply the most recently "
        "edited pages, which may be stale. Say so at the start and focus on open items."
    ),
    "no_content": (
        "The user's workspace has no pages available to summarize. Write two or three friendly "
        "sentences saying there is no recent content and suggesting they add or share pages "
        "with the integration."
    ),
    "manual": "The user triggered this summary manually from the dashboard.",
}

SUMMARY_USER_PROMPT = """## Task
{context_instruction}

## Requirements
- Style: {style}
- Length: {length_instruction}
- Focus on: {focus}
{extra_requirements}
Write plain text with simple Markdown (bold and bullet points only). Do not invent facts that are not in the notes.

## Notes
{content}"""


def get_system_prompt(style: str) -> str:
    """Resolve the system prompt for a summary style, defaulting to executive."""
    return STYLE_SYSTEM_PROMPTS.get(style, STYLE_SYSTEM_PROMPTS["executive"])
