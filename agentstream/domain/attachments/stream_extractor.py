from typing import List, NamedTuple

from agentstream.domain.models.attachment import FileAttachment
from .extractor import CLOSE_TAG, OPEN_TAG, VisibleTextWriter, parse_block_paths


class StreamExtraction(NamedTuple):
    visible_text: str
    attachments: List[FileAttachment]


def _partial_tag_length(buffer: str) -> int:
    """Length of the longest buffer suffix that could still grow into an opening tag"""

    for length in range(min(len(OPEN_TAG) - 1, len(buffer)), 0, -1):
        if buffer.endswith(OPEN_TAG[:length]):
            return length
    return 0


class AttachmentsStreamExtractor:
    """
    Incremental counterpart of ``extract_attachments`` for streamed text.

    ``push`` emits whatever part of the accumulated text can no longer become
    part of a block; ``flush_remainder`` resolves the rest at end of stream.
    Over any split of a text into deltas, the concatenated output equals the
    batch extraction of the whole text.

    One instance per stream; not safe to share between concurrent streams.
    """

    def __init__(self):
        self._buffer = ""
        self._capturing = False
        self._writer = VisibleTextWriter()

    @property
    def capturing(self) -> bool:
        return self._capturing

    def push(self, delta: str) -> StreamExtraction:
        self._buffer += delta
        attachments = self._consume_buffer()
        return StreamExtraction(visible_text=self._writer.drain(), attachments=attachments)

    def flush_remainder(self) -> StreamExtraction:
        """Resolve the buffer at end of stream and reset for the next text part"""

        # an unterminated block or a dangling tag prefix is plain text
        self._writer.write_text(self._buffer)
        visible_text = self._writer.finish()
        self.reset()
        return StreamExtraction(visible_text=visible_text, attachments=[])

    def reset(self):
        """Discard all buffered state"""
        self._buffer = ""
        self._capturing = False
        self._writer = VisibleTextWriter()

    def _consume_buffer(self) -> List[FileAttachment]:
        attachments: List[FileAttachment] = []

        while self._buffer:
            if self._capturing:
                end = self._buffer.find(CLOSE_TAG, len(OPEN_TAG))
                if end < 0:
                    break
                end += len(CLOSE_TAG)
                block, self._buffer = self._buffer[:end], self._buffer[end:]
                attachments.extend(parse_block_paths(block[len(OPEN_TAG):-len(CLOSE_TAG)]))
                self._writer.write_block()
                self._capturing = False
                continue

            start = self._buffer.find(OPEN_TAG)
            if start >= 0:
                self._writer.write_text(self._buffer[:start])
                self._buffer = self._buffer[start:]
                self._capturing = True
                continue

            safe_end = len(self._buffer) - _partial_tag_length(self._buffer)
            self._writer.write_text(self._buffer[:safe_end])
            self._buffer = self._buffer[safe_end:]
            break

        return attachments
