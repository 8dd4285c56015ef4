from datetime import datetime

DEFAULT_INSTRUCTIONS = """Do not infer or repeat old tasks from prior chats.
If nothing needs attention, reply HEARTBEAT_OK.
If something needs attention, use the send tool to deliver alerts to the appropriate channel."""


def heartbeat_prompt(interval: int, date: datetime, checklist: str = "") -> str:
    """Periodic check-in; ``checklist`` is the content of the user's heartbeat checklist, if any"""

    sections = [
        "** This is a heartbeat check automatically triggered by the system **",
        "---",
        f"interval: every {interval} minutes",
        f"time: {date.isoformat()}",
        "---",
    ]
    if checklist.strip():
        sections.append(f"\n## HEARTBEAT.md (checklist)\n\n{checklist.strip()}")
    sections.append(f"\n{DEFAULT_INSTRUCTIONS}")

    return "\n".join(sections).strip()
