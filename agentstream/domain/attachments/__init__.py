from .dedupe import dedupe_attachments, merge_attachments
from .extractor import (
    CLOSE_TAG,
    OPEN_TAG,
    ExtractionResult,
    StrippedMessages,
    extract_attachments,
    message_text,
    parse_block_paths,
    strip_attachments_from_messages,
)
from .stream_extractor import AttachmentsStreamExtractor, StreamExtraction

__all__ = [
    "AttachmentsStreamExtractor",
    "CLOSE_TAG",
    "ExtractionResult",
    "OPEN_TAG",
    "StreamExtraction",
    "StrippedMessages",
    "dedupe_attachments",
    "extract_attachments",
    "merge_attachments",
    "message_text",
    "parse_block_paths",
    "strip_attachments_from_messages",
]
