"""InvoiceLeaf Slack — Block Kit Builders.

Small constructors for the Block Kit elements and blocks used by the
notification messages, plus the legacy attachment that paints the
colored side bar.
"""

from __future__ import annotations

from typing import Any, Optional

Block = dict[str, Any]

# ── Side bar colors per status ───────────────────────────
STATUS_COLORS: dict[str, str] = {
    "success": "#36a64f",
    "warning": "#f2c744",
    "error": "#dc3545",
    "info": "#0066cc",
}


# ═══════════════════════════════════════════════════════════
# Elements
# ═══════════════════════════════════════════════════════════


def plain_text(text: str, emoji: bool = True) -> dict[str, Any]:
    """Create a plain_text element."""
    return {"type": "plain_text", "text": text, "emoji": emoji}


def mrkdwn(text: str) -> dict[str, Any]:
    """Create a mrkdwn text element."""
    return {"type": "mrkdwn", "text": text}


def button(
    text: str,
    action_id: str,
    url: Optional[str] = None,
    value: Optional[str] = None,
    style: Optional[str] = None,
) -> dict[str, Any]:
    """Create a button element.

    Args:
        text: Button label.
        action_id: Identifier Slack echoes back on click.
        url: Link opened by the button.
        value: Opaque value sent with interactions.
        style: "primary" or "danger".

    Returns:
        Button element dict.
    """
    element: dict[str, Any] = {
        "type": "button",
        "text": plain_text(text),
        "action_id": action_id,
    }
    if url:
        element["url"] = url
    if value:
        element["value"] = value
    if style:
        if style not in ("primary", "danger"):
            raise ValueError(f"Unsupported button style: {style}")
        element["style"] = style
    return element


# ═══════════════════════════════════════════════════════════
# Blocks
# ═══════════════════════════════════════════════════════════


def header(text: str) -> Block:
    """Create a header block."""
    return {"type": "header", "text": plain_text(text)}


def section(text: str) -> Block:
    """Create a section block with mrkdwn text."""
    return {"type": "section", "text": mrkdwn(text)}


def section_with_fields(fields: list[dict[str, Any]]) -> Block:
    """Create a section block laid out as a two-column field grid."""
    return {"type": "section", "fields": fields}


def field_pair(label: str, value: str) -> dict[str, Any]:
    """A "*Label*\\nvalue" field for section_with_fields."""
    return mrkdwn(f"*{label}*\n{value}")


def context(*texts: str) -> Block:
    """Create a context block with one mrkdwn element per text."""
    return {"type": "context", "elements": [mrkdwn(t) for t in texts]}


def divider() -> Block:
    """Create a divider block."""
    return {"type": "divider"}


def actions(*elements: dict[str, Any]) -> Block:
    """Create an actions block holding buttons."""
    return {"type": "actions", "elements": list(elements)}


def status_attachment(status: str) -> dict[str, Any]:
    """Legacy attachment that renders only a colored side bar.

    Args:
        status: One of "success", "warning", "error", "info".

    Returns:
        Attachment dict with color and empty fallback.

    Raises:
        ValueError: If the status has no color.
    """
    if status not in STATUS_COLORS:
        raise ValueError(f"Unknown status color: {status}")
    return {"color": STATUS_COLORS[status], "fallback": ""}
