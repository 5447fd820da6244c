"""Formatting helpers for Slack output."""
