"""Slack Thread Tracker.

A Slack bot that names conversation threads and tracks whether they are
open or closed, so participants can list their open threads with
``/mythreads`` instead of scrolling back through a channel.

Features:
- Environment-based configuration with Pydantic validation
- Startup backfill of recent thread history
- Live reconciliation of thread replies over Socket Mode
- Manual thread renaming via in-thread commands
"""

__version__ = "1.0.0"
__license__ = "MIT"
