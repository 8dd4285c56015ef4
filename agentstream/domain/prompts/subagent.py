from datetime import datetime
from typing import Optional

from .utils import front_matter


def subagent_system_prompt(date: datetime, name: str, description: Optional[str] = None) -> str:
    headers = {
        "name": name,
        "description": description or "",
        "time-now": date.isoformat(),
    }
    parts = [description, front_matter(headers)] if description else [front_matter(headers)]
    return "\n\n".join(parts)
