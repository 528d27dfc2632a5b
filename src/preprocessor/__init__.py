"""Declaration preprocessor - PDF text extraction and upload checks."""

__version__ = "0.1.0"

from .text import check_upload, extract_text, extract_text_from_file

__all__ = ["check_upload", "extract_text", "extract_text_from_file", "__version__"]
