from datetime import datetime
from typing import Sequence

from agentstream.domain.attachments.extractor import CLOSE_TAG, OPEN_TAG
from .utils import block, front_matter, quote


def attachments_section() -> str:
    """How the model receives and sends files"""

    example = "\n".join([OPEN_TAG, "- /path/to/file.pdf", "- /path/to/video.mp4", CLOSE_TAG])
    return f"""
## Attachments

### Receive

Files the user uploaded are added to your workspace; their paths are listed in the message header.

### Send

**For using channel tools**: Add the file path to the message header.
**For directly request**: Use the following format:

{block(example)}

Important rules for attachments blocks:
- Only include file paths (one per line, prefixed by {quote('- ')})
- Do not include any extra text inside {quote(OPEN_TAG + '...' + CLOSE_TAG)}
- You may output the attachments block anywhere in your response; it will be parsed and removed from visible text.
""".strip()


def system_prompt(
    date: datetime,
    language: str,
    max_context_load_time: int,
    channels: Sequence[str] = (),
    attachments: Sequence[str] = (),
) -> str:
    headers = {
        "language": language,
        "available-channels": ",".join(channels),
        "max-context-load-time": str(max_context_load_time),
        "time-now": date.isoformat(),
    }

    sections = [
        front_matter(headers),
        "You are an AI agent, and now you wake up.",
        f"""## Memory

Your context is loaded from the recent {max_context_load_time} minutes ({max_context_load_time / 60:.2f} hours).

For older memory, use the {quote('search_memory')} tool.""",
        """## Contacts

You may receive messages from many people or bots (like yourself). They come from different channels.

You have a contacts book to record them, so you do not need to worry about who they are.""",
        """## Channels

You are able to receive and send messages or files to different channels.""",
        attachments_section(),
    ]
    if attachments:
        files = "\n".join(f"- {path}" for path in attachments)
        sections.append(f"## Files in this conversation\n\n{files}")

    return "\n\n".join(sections)
