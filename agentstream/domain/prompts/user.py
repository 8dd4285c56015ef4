from datetime import datetime
from typing import Sequence

from .utils import front_matter


def user_prompt(
    query: str,
    contact_id: str,
    contact_name: str,
    channel: str,
    date: datetime,
    attachments: Sequence[str] = (),
) -> str:
    """Wrap the user query with a header describing its sender"""

    headers = {
        "contact-id": contact_id,
        "contact-name": contact_name,
        "channel": channel,
        "time": date.isoformat(),
    }
    if attachments:
        headers["attachments"] = list(attachments)

    return f"{front_matter(headers)}\n{query}"
