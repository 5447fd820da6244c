"""Slack mrkdwn formatting utilities.

Only three characters need escaping in regular mrkdwn text: &, <, >.
Links use the angle-bracket form ``<url|label>`` and channel mentions the
form ``<#C0123>``.
"""


def escape_mrkdwn(text: str) -> str:
    """Escape the 3 special characters for Slack mrkdwn.

    Slack requires &, <, > to be escaped as HTML entities even inside
    mrkdwn text so they are not interpreted as message formatting
    directives.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def link(url: str, label: str) -> str:
    """Render a mrkdwn link with an escaped label."""
    return f"<{url}|{escape_mrkdwn(label)}>"


def channel_mention(channel_id: str) -> str:
    return f"<#{channel_id}>"
