"""Non-blocking single-key input for the live timer view."""

import sys
from typing import IO, Any, Optional


class KeyReader:
    """Reads single key presses without blocking.

    On a terminal the input is switched to cbreak mode for the lifetime of
    the reader (use it as a context manager). Piped input is consumed one
    character per poll, and end of input is reported as ``"q"``.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream if stream is not None else sys.stdin
        self.interactive = bool(getattr(self.stream, "isatty", lambda: False)())
        self._saved_attrs: Optional[Any] = None

    def __enter__(self) -> "KeyReader":
        if self.interactive and sys.platform != "win32":
            import termios
            import tty

            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._saved_attrs is not None:
            import termios

            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def poll(self) -> Optional[str]:
        """Return the next pressed key, or None if no key is waiting."""
        if not self.interactive:
            char = self.stream.read(1)
            return char if char else "q"

        if sys.platform == "win32":
            import msvcrt  # type: ignore[import-not-found]

            if msvcrt.kbhit():  # type: ignore[attr-defined]
                return msvcrt.getwch()  # type: ignore[attr-defined]
            return None

        import select

        ready, _, _ = select.select([self.stream], [], [], 0)
        if ready:
            return self.stream.read(1)
        return None
