"""Agent modules for declaration extraction."""
from agents.completion import CompletionClient
from agents.normalizer import normalize, to_raw_payload
from agents.extractors.declaration import extract_declaration, run_declaration_extractor

__all__ = [
    "CompletionClient",
    "normalize",
    "to_raw_payload",
    "extract_declaration",
    "run_declaration_extractor",
]
