"""Declaration extractor agent - PDF declaration to ExtractionResult.

Pipeline: extract_text -> build prompt -> complete -> normalize.

Every failure along the way (service not configured, network error, empty or
garbled reply) ends in the same place: an empty ExtractionResult. Callers
cannot tell "service unavailable" from "service returned garbage" and treat
both as "no pre-fill data, proceed manually".
"""
import logging
from pathlib import Path
from typing import Optional

from schemas.extraction import ExtractionResult
from preprocessor.text import check_upload, extract_text
from agents import config
from agents.completion import Completer, CompletionClient
from agents.extractors.base import load_instructions
from agents.normalizer import normalize
from ingestion.errors import ExtractionUnavailable

logger = logging.getLogger(__name__)


def build_declaration_prompt(document_text: str, instructions_dir: Optional[Path] = None) -> str:
    """
    Build the extraction prompt for one declaration.

    Args:
        document_text: Plain text of the declaration
        instructions_dir: Directory holding instructions.md (default: configured)

    Returns:
        Prompt embedding the instructions and the document
    """
    instructions = load_instructions(
        instructions_dir or config.get_instructions_dir(),
        "instructions.md"
    )
    return f"""{instructions}

The document is:
{document_text}
"""


def run_declaration_extractor(
    document_text: str,
    client: Optional[Completer] = None,
    instructions_dir: Optional[Path] = None
) -> ExtractionResult:
    """
    Extract property, buildings and units from declaration text.

    Args:
        document_text: Plain text of the declaration
        client: Completion client (default: CompletionClient from environment)
        instructions_dir: Override for the instructions directory

    Returns:
        Normalized extraction, empty if the completion service failed
    """
    if not document_text.strip():
        logger.warning("Declaration has no extractable text, skipping completion")
        return ExtractionResult.empty()

    prompt = build_declaration_prompt(document_text, instructions_dir)
    client = client or CompletionClient()

    try:
        response = client.complete(prompt)
    except ExtractionUnavailable as e:
        logger.warning(f"Extraction unavailable: {e}")
        return ExtractionResult.empty()

    return normalize(response)


def extract_declaration(
    data: bytes,
    client: Optional[Completer] = None,
    content_type: Optional[str] = None,
    instructions_dir: Optional[Path] = None
) -> ExtractionResult:
    """
    Run the full extraction pipeline on an uploaded declaration.

    Args:
        data: Raw PDF bytes
        client: Completion client (default: CompletionClient from environment)
        content_type: Declared MIME type; checked when given
        instructions_dir: Override for the instructions directory

    Returns:
        Normalized extraction, empty if the completion service failed

    Raises:
        UnsupportedUpload: If content_type is given and is not a PDF type
    """
    if content_type is not None:
        check_upload(content_type)

    document_text = extract_text(data)
    logger.info(f"Extracted {len(document_text)} characters of declaration text")

    return run_declaration_extractor(document_text, client, instructions_dir)
