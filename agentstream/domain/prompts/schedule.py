from datetime import datetime

from agentstream.domain.models.agent_input import Schedule
from .utils import front_matter


def schedule_prompt(schedule: Schedule, date: datetime) -> str:
    headers = {
        "schedule-name": schedule.name,
        "schedule-description": schedule.description,
        "max-calls": schedule.max_calls if schedule.max_calls is not None else "Unlimited",
        "cron-pattern": schedule.pattern,
        "time": date.isoformat(),
    }
    return "\n".join([
        "** This is a scheduled task automatically sent to you by the system **",
        front_matter(headers),
        "",
        schedule.command,
    ]).strip()
