"""Tests for prompt rendering."""

from datetime import datetime

import yaml

from agentstream.domain.models import Schedule
from agentstream.domain.prompts import (
    heartbeat_prompt, schedule_prompt, subagent_system_prompt, system_prompt, user_prompt,
)

NOW = datetime(2026, 3, 1, 9, 30)


def headers_of(prompt: str) -> dict:
    _, body, _ = prompt.split("---", 2)
    return yaml.safe_load(body)


def test_system_prompt_headers_and_attachment_format():
    prompt = system_prompt(NOW, "English", 90, channels=("telegram", "web"), attachments=("/in/a.txt",))

    headers = headers_of(prompt)
    assert headers["language"] == "English"
    assert headers["available-channels"] == "telegram,web"
    assert headers["max-context-load-time"] == "90"
    assert "<attachments>\n- /path/to/file.pdf" in prompt
    assert "1.50 hours" in prompt
    assert prompt.endswith("## Files in this conversation\n\n- /in/a.txt")


def test_user_prompt_lists_attachments():
    prompt = user_prompt("hello", "c-1", "Ada", "telegram", NOW, attachments=["/in/a.txt"])

    headers = headers_of(prompt)
    assert headers["contact-id"] == "c-1"
    assert headers["attachments"] == ["/in/a.txt"]
    assert prompt.endswith("---\nhello")


def test_user_prompt_without_attachments():
    headers = headers_of(user_prompt("hello", "c-1", "Ada", "web", NOW))

    assert "attachments" not in headers


def test_schedule_prompt_limits():
    limited = Schedule(name="digest", pattern="0 8 * * *", command="Send the digest", max_calls=3)

    headers = headers_of(schedule_prompt(limited, NOW).split("\n", 1)[1])

    assert headers["max-calls"] == 3
    assert headers["cron-pattern"] == "0 8 * * *"


def test_subagent_prompt_without_description():
    prompt = subagent_system_prompt(NOW, "helper")

    assert prompt.startswith("---")
    assert headers_of(prompt)["name"] == "helper"


def test_heartbeat_without_checklist():
    prompt = heartbeat_prompt(15, NOW)

    assert "HEARTBEAT.md" not in prompt
    assert "HEARTBEAT_OK" in prompt
