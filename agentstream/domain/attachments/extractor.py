"""
Attachment directive grammar and batch extraction.

The model may emit one or more directive blocks anywhere in its text::

    <attachments>
    - /path/to/file.pdf
    </attachments>

Blocks are removed from the visible text and every ``- <path>`` line becomes a
``FileAttachment``. An opening tag that is never closed is left as plain text.
"""

import re
from typing import Any, List, NamedTuple, Optional, Sequence

from langchain_core.messages import BaseMessage

from agentstream.domain.models.attachment import Attachment, FileAttachment, attachment_list_adapter
from .dedupe import dedupe_attachments

OPEN_TAG = "<attachments>"
CLOSE_TAG = "</attachments>"

_BLOCK_PATTERN = re.compile(re.escape(OPEN_TAG) + r"(.*?)" + re.escape(CLOSE_TAG), re.DOTALL)


class ExtractionResult(NamedTuple):
    cleaned_text: str
    attachments: List[FileAttachment]


class StrippedMessages(NamedTuple):
    messages: List[BaseMessage]
    attachments: List[Attachment]


def parse_block_paths(body: str) -> List[FileAttachment]:
    """Parse the lines between the tags of one block"""

    attachments = []
    for line in body.splitlines():
        line = line.strip()
        if not line.startswith("- "):
            continue
        path = line[2:].strip()
        if path:
            attachments.append(FileAttachment(path=path))
    return attachments


class VisibleTextWriter:
    """
    Assembles visible text around removed blocks.

    Text and blocks are written in order, in pieces of any size; the output
    only depends on their concatenation. Trailing whitespace is held back
    until the next non-whitespace text, because a following block may absorb
    it. A run of blocks separated only by whitespace (a seam) is replaced by
    a single separator:

    - nothing at the start or end of the visible text
    - up to two newlines when the surrounding whitespace had newlines,
      keeping the indentation that followed the last one
    - one space when the surrounding whitespace had no newline
    - nothing when the blocks touched the text directly

    Once a block has been removed, trailing whitespace of the text is dropped
    as well. Leading whitespace before the first block is kept.
    """

    def __init__(self):
        self._output: List[str] = []
        self._pending = ""
        self._seam_runs: Optional[List[str]] = None
        self._started = False
        self._had_block = False

    def write_text(self, text: str):
        if not text:
            return

        body = text.lstrip()
        lead = text[:len(text) - len(body)]
        if self._seam_runs is not None:
            self._seam_runs[-1] += lead
        else:
            self._pending += lead
        if not body:
            return

        content = body.rstrip()
        if self._seam_runs is not None:
            self._output.append(self._seam_separator())
            self._seam_runs = None
        else:
            self._output.append(self._pending)
        self._output.append(content)
        self._pending = body[len(content):]
        self._started = True

    def write_block(self):
        self._had_block = True
        if self._seam_runs is None:
            self._seam_runs = [self._pending, ""]
            self._pending = ""
        else:
            self._seam_runs.append("")

    def drain(self) -> str:
        """Return the text made safe since the last drain"""
        text = "".join(self._output)
        self._output = []
        return text

    def finish(self) -> str:
        """Resolve held whitespace at end of text and drain"""
        if self._seam_runs is None and not self._had_block:
            self._output.append(self._pending)
        self._pending = ""
        self._seam_runs = None
        return self.drain()

    def _seam_separator(self) -> str:
        if not self._started:
            return ""

        runs = self._seam_runs or []
        newlines = max(run.count("\n") for run in runs)
        if newlines:
            last = runs[-1]
            indent = last[last.rfind("\n") + 1:] if "\n" in last else ""
            return "\n" * min(newlines, 2) + indent
        if any(runs):
            return " "
        return ""


def extract_attachments(text: str) -> ExtractionResult:
    """Remove every complete attachments block from text, collecting its paths"""

    matches = list(_BLOCK_PATTERN.finditer(text))
    if not matches:
        return ExtractionResult(cleaned_text=text, attachments=[])

    writer = VisibleTextWriter()
    attachments: List[FileAttachment] = []
    position = 0
    for match in matches:
        writer.write_text(text[position:match.start()])
        writer.write_block()
        attachments.extend(parse_block_paths(match.group(1)))
        position = match.end()
    writer.write_text(text[position:])

    return ExtractionResult(cleaned_text=writer.finish(), attachments=attachments)


def message_text(message: BaseMessage) -> str:
    """Concatenated text of a message, ignoring non-text content blocks"""

    content = message.content
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _strip_content(content: Any, found: List[Attachment]) -> Any:
    if isinstance(content, str):
        cleaned, attachments = extract_attachments(content)
        found.extend(attachments)
        return cleaned

    blocks = []
    for block in content:
        if isinstance(block, str):
            block = _strip_content(block, found)
        elif isinstance(block, dict) and block.get("type") == "text":
            block = {**block, "text": _strip_content(block.get("text", ""), found)}
        blocks.append(block)
    return blocks


def strip_attachments_from_messages(messages: Sequence[BaseMessage]) -> StrippedMessages:
    """
    Remove attachment markup from every message before it goes back into history.

    Returns copies of the messages with cleaned text, and the attachments
    found in their text followed by the ones tools stored out-of-band under
    ``additional_kwargs["attachments"]``, deduplicated.
    """

    stripped: List[BaseMessage] = []
    found: List[Attachment] = []
    for message in messages:
        content = _strip_content(message.content, found)
        if content != message.content:
            message = message.model_copy(update={"content": content})
        stripped.append(message)

        out_of_band = message.additional_kwargs.get("attachments")
        if out_of_band:
            found.extend(attachment_list_adapter.validate_python(out_of_band))

    return StrippedMessages(messages=stripped, attachments=dedupe_attachments(found))
