"""
Extraction Prompts

Instruction templates sent to extraction services.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from pathlib import Path

PROMPTS_DIR = Path(__file__).parent

DEFAULT_PROMPT = "intake"


def get_prompt_path(name: str) -> Path:
    """Get the path to a prompt template."""
    return PROMPTS_DIR / f"{name}.txt"


def load_prompt(name: str = DEFAULT_PROMPT) -> str:
    """Load a prompt template."""
    path = get_prompt_path(name)
    if not path.exists():
        raise ValueError(f"Unknown prompt: {name}")
    return path.read_text()


def build_prompt(note: str, name: str = DEFAULT_PROMPT) -> str:
    """Fill a prompt template with the clinical note."""
    template = load_prompt(name)
    if "{note}" in template:
        return template.replace("{note}", note)
    return f"{template}\n{note}\n\nJSON:"
