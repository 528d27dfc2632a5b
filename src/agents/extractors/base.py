"""Common utilities for extractor agents."""
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CODE_FENCE = "```"


def load_instructions(instructions_dir: Path, *filenames: str) -> str:
    """
    Load and concatenate instruction files.

    Args:
        instructions_dir: Base directory for instructions
        filenames: Instruction file names to load

    Returns:
        Concatenated instruction text

    Raises:
        FileNotFoundError: If instruction file missing
    """
    parts = []
    for filename in filenames:
        filepath = instructions_dir / filename
        if not filepath.exists():
            raise FileNotFoundError(f"Instruction file not found: {filepath}")
        parts.append(filepath.read_text(encoding="utf-8"))
    return "\n\n---\n\n".join(parts)


def strip_code_fences(text: str) -> str:
    """
    Remove a Markdown code fence wrapping the whole response.

    A response starting with ``` loses its opening fence line (including any
    language tag such as ```json) and a closing fence on its last line.
    Anything else is returned stripped but otherwise unchanged.

    Args:
        text: Raw completion output

    Returns:
        Text with the fence lines removed
    """
    text = (text or "").strip()
    if not text.startswith(CODE_FENCE):
        return text

    lines = text.split("\n")
    lines = lines[1:]
    if lines and lines[-1].strip().startswith(CODE_FENCE):
        lines = lines[:-1]
    return "\n".join(lines).strip()
