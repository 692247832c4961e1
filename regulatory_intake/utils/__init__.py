from .logger import setup_logging
from .hashing import checksum_matches, document_checksum

__all__ = ["setup_logging", "checksum_matches", "document_checksum"]
