"""Slack Web API access."""

from .gateway import ChannelInfo, SlackGateway

__all__ = ["ChannelInfo", "SlackGateway"]
