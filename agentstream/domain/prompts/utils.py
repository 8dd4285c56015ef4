from typing import Any, Dict

import yaml


def quote(text: str) -> str:
    return f"`{text}`"


def block(text: str, language: str = "") -> str:
    return f"```{language}\n{text}\n```"


def front_matter(headers: Dict[str, Any]) -> str:
    """Render headers as a YAML front-matter section"""
    body = yaml.safe_dump(headers, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{body}---"
