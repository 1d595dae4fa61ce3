"""Prompt builders for artifact observation analysis."""

def build_instruction() -> str:
    """Return the instruction sent alongside the image."""
    return (
        "You are an expert archaeological analyst. Given the image, return a JSON object with keys:\n"
        '{"label":"short label","estimated_age":"human-readable date range","confidence":0-1,"notes":"optional"}\n'
        "Return valid JSON only."
    )
