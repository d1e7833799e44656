"""Slack webhook output for the digest text."""
from __future__ import annotations

import requests

MAX_SLACK_CHARS = 39000
SLACK_BLOCK_TEXT_LIMIT = 3000
SLACK_MAX_BLOCKS = 50
HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT = 30
SLACK_ESCAPES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"))


class SlackWebhookError(RuntimeError):
    """Raised when a Slack webhook call fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a Slack webhook error."""
        super().__init__(f"Slack webhook failed ({status_code}): {text}")


def escape_slack_text(text: str) -> str:
    """Escape the characters Slack treats as control sequences."""
    for char, entity in SLACK_ESCAPES:
        text = text.replace(char, entity)
    return text


def trim_message(message: str) -> str:
    """Trim the message to fit Slack limits."""
    if len(message) <= MAX_SLACK_CHARS:
        return message
    return message[: MAX_SLACK_CHARS - 100] + "\n\n[truncated]"


def split_long_line(line: str) -> list[str]:
    """Hard-split a line that would not fit in a single Slack block."""
    if len(line) <= SLACK_BLOCK_TEXT_LIMIT:
        return [line]
    return [
        line[i : i + SLACK_BLOCK_TEXT_LIMIT]
        for i in range(0, len(line), SLACK_BLOCK_TEXT_LIMIT)
    ]


def chunk_slack_text(message: str) -> list[str]:
    """Split message into Slack block-sized chunks on newline boundaries."""
    if not message:
        return [""]
    chunks: list[str] = []
    current: list[str] = []
    current_len = 0
    lines = [piece for line in message.split("\n") for piece in split_long_line(line)]
    for line in lines:
        added = len(line) + (1 if current else 0)
        if current and current_len + added > SLACK_BLOCK_TEXT_LIMIT:
            chunks.append("\n".join(current))
            current = []
            current_len = 0
            added = len(line)
        current.append(line)
        current_len += added
    if current:
        chunks.append("\n".join(current))
    return chunks


def build_blocks(message: str, header_text: str) -> list[dict[str, object]]:
    """Build Slack blocks: header, context, divider, then text sections."""
    header_blocks: list[dict[str, object]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "Daily Cycle Digest"},
        },
        {"type": "context", "elements": [{"type": "mrkdwn", "text": header_text}]},
        {"type": "divider"},
    ]
    max_sections = SLACK_MAX_BLOCKS - len(header_blocks)
    chunks = chunk_slack_text(message)
    if len(chunks) <= max_sections:
        sections = chunks
    else:
        sections = chunks[: max_sections - 1]
        sections.append("[truncated]")
    return header_blocks + [
        {"type": "section", "text": {"type": "mrkdwn", "text": section}}
        for section in sections
    ]


def post_to_slack(webhook_url: str, message: str, header_text: str) -> None:
    """Post an already escaped message to Slack via webhook."""
    response = requests.post(
        webhook_url,
        json={
            "text": trim_message(message),
            "blocks": build_blocks(message, header_text),
        },
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code >= HTTP_ERROR_THRESHOLD:
        raise SlackWebhookError(response.status_code, response.text)
