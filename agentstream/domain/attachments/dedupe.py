from typing import Iterable, List, Sequence

from agentstream.domain.models.attachment import Attachment


def dedupe_attachments(attachments: Iterable[Attachment]) -> List[Attachment]:
    """Drop later duplicates, keeping first-seen order.

    Files are the same when their paths are equal, images when their
    payloads are byte-identical.
    """

    seen = set()
    unique = []
    for attachment in attachments:
        key = attachment.identity_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(attachment)
    return unique


def merge_attachments(first: Sequence[Attachment], second: Sequence[Attachment]) -> List[Attachment]:
    """Concatenate two attachment lists and deduplicate"""
    return dedupe_attachments([*first, *second])
