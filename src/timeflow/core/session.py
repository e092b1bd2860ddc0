"""Timer session: entry name, project association, tags and shortcuts."""

import logging
import re
from typing import Optional

from timeflow.core.timer import TimerEngine

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 80

_TAG_SEPARATORS = re.compile(r"[,\s]+")


class TimerSession:
    """Metadata that accompanies a timer while it runs.

    The project association is presentational only; it is not checked
    against the document store.
    """

    def __init__(
        self,
        engine: Optional[TimerEngine] = None,
        name: str = "",
        project_id: Optional[str] = None,
        tags: Optional[list[str]] = None,
        name_max_length: int = NAME_MAX_LENGTH,
    ):
        """Initialize a session.

        Args:
            engine: Timer engine to drive from keyboard shortcuts
            name: Entry name
            project_id: Associated project identifier
            tags: Initial tags
            name_max_length: Longest name accepted without a validation message
        """
        self.engine = engine or TimerEngine()
        self.name = name
        self.project_id = project_id
        self.name_max_length = name_max_length
        self.tag_input = ""
        self._tags: list[str] = []
        if tags:
            self.commit_tags(" ".join(tags))

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    @property
    def name_error(self) -> Optional[str]:
        """Validation message for the entry name, or None when valid."""
        if len(self.name) > self.name_max_length:
            return f"Name is too long (max {self.name_max_length} characters)."
        return None

    def commit_tags(self, raw: Optional[str] = None) -> list[str]:
        """Add tags from ``raw`` (or the input buffer) and clear the buffer.

        Tokens are split on commas and whitespace, lowercased, and merged
        with the existing tags. Re-adding a tag is a no-op.

        Args:
            raw: Text to parse. Defaults to ``tag_input``

        Returns:
            The tags after the commit
        """
        text = self.tag_input if raw is None else raw
        for part in _TAG_SEPARATORS.split(text.strip()):
            token = part.strip().lower()
            if token and token not in self._tags:
                self._tags.append(token)
        self.tag_input = ""
        return self.tags

    def remove_tag(self, tag: str) -> None:
        """Remove a tag by exact match."""
        self._tags = [t for t in self._tags if t != tag]

    def handle_key(self, key: str, text_entry_focused: bool = False) -> bool:
        """Dispatch a keyboard shortcut to the engine.

        Space toggles start/pause, ``l`` adds a lap while running, ``r``
        resets and ``s`` stops. Keys are ignored while a text-entry control
        has focus.

        Args:
            key: Key that was pressed
            text_entry_focused: Whether a text-entry control has focus

        Returns:
            True if the key triggered a transition
        """
        if text_entry_focused:
            return False

        if key == " ":
            if self.engine.is_running:
                self.engine.pause()
            else:
                self.engine.start()
            return True

        lowered = key.lower()
        if lowered == "l":
            return self.engine.add_lap() is not None
        if lowered == "r":
            self.engine.reset()
            return True
        if lowered == "s":
            self.engine.stop()
            return True
        return False
