"""Thread naming and in-thread command parsing.

All functions here are pure: text in, derived value out. Missing text is
treated as an empty string, never as an error.
"""

from typing import Iterable, Optional, Sequence

from ..config.settings import DEFAULT_CLOSE_KEYWORDS, DEFAULT_RENAME_PREFIXES

MAX_NAME_LENGTH = 30
ELLIPSIS = "..."
UNTITLED_THREAD_NAME = "(untitled thread)"


class ThreadParser:
    """Derives thread names and recognizes rename/close commands.

    Rename prefixes are checked in configured order, so the first matching
    prefix wins. Both prefixes and close keywords match case-insensitively;
    the extracted name keeps the casing the user typed.
    """

    def __init__(
        self,
        rename_prefixes: Optional[Sequence[str]] = None,
        close_keywords: Optional[Iterable[str]] = None,
    ) -> None:
        prefixes = (
            DEFAULT_RENAME_PREFIXES if rename_prefixes is None else rename_prefixes
        )
        keywords = DEFAULT_CLOSE_KEYWORDS if close_keywords is None else close_keywords
        self._folded_prefixes = [(p, p.casefold()) for p in prefixes]
        self.close_keywords = frozenset(k.strip().casefold() for k in keywords)

    @staticmethod
    def derive_default_name(root_text: Optional[str]) -> str:
        """Name a thread after the first characters of its root message."""
        cleaned = (root_text or "").strip()
        if len(cleaned) <= MAX_NAME_LENGTH:
            return cleaned
        return cleaned[:MAX_NAME_LENGTH] + ELLIPSIS

    def extract_rename_command(self, text: Optional[str]) -> Optional[str]:
        """Return the new name if ``text`` is a rename command, else None.

        ``"Name:  Release prep "`` yields ``"Release prep"``. A prefix with
        nothing after it is not a command.
        """
        trimmed = (text or "").strip()

        for prefix, folded in self._folded_prefixes:
            if trimmed[: len(prefix)].casefold() == folded:
                new_name = trimmed[len(prefix) :].strip()
                return new_name or None

        return None

    def is_close_signal(self, text: Optional[str]) -> bool:
        """True when the whole message is a close keyword."""
        return (text or "").strip().casefold() in self.close_keywords

    def latest_rename(self, texts: Sequence[Optional[str]]) -> Optional[str]:
        """Find the most recent rename command in oldest-first ``texts``.

        Earlier commands in the same batch are superseded.
        """
        for text in reversed(texts):
            new_name = self.extract_rename_command(text)
            if new_name:
                return new_name
        return None
