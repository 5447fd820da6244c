"""Slack Bolt application wiring."""
