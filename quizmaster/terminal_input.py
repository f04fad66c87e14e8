"""
Non-blocking single-key input for the question countdown.

``KeyPoller.poll()`` returns the latest printable key, upper-cased, or
``None``. It never blocks and never raises. Multi-byte keys (arrows,
function keys, non-ASCII characters) are skipped whole and reported as
``None``; keys typed after them are still read.
"""
import logging
import os
import sys
from typing import Optional

if os.name == "nt":
    import msvcrt
    TERMINAL_ERRORS = (OSError,)
else:
    import select
    import termios
    import tty
    TERMINAL_ERRORS = (OSError, termios.error)


logger = logging.getLogger(__name__)

ESCAPE = b"\x1b"
WINDOWS_EXTENDED_PREFIXES = ("\x00", "\xe0")


def normalize_key(char: Optional[str]) -> Optional[str]:
    """Upper-case a printable character; anything else becomes ``None``."""
    if not char or len(char) != 1 or not char.isprintable():
        return None
    return char.upper()


class PosixKeyReader:
    """Reads keys byte by byte from a POSIX file descriptor."""

    def __init__(self, fd: Optional[int] = None):
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._saved_attributes = None

    def enable(self) -> None:
        """Switch a terminal to cbreak mode so keys arrive unbuffered."""
        if not os.isatty(self._fd):
            return
        self._saved_attributes = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)

    def disable(self) -> None:
        """Restore the terminal attributes saved by ``enable``."""
        if self._saved_attributes is None:
            return
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attributes)
        self._saved_attributes = None

    def _byte_waiting(self) -> bool:
        ready, _, _ = select.select([self._fd], [], [], 0)
        return bool(ready)

    def _read_waiting_byte(self) -> bytes:
        if not self._byte_waiting():
            return b""
        return os.read(self._fd, 1)

    def _skip_escape_sequence(self) -> None:
        """Consume the rest of a CSI or SS3 sequence such as an arrow key."""
        if self._read_waiting_byte() not in (b"[", b"O"):
            return
        while True:
            byte = self._read_waiting_byte()
            # Parameter bytes run until a final byte in the @..~ range
            if not byte or 0x40 <= byte[0] <= 0x7E:
                return

    def _skip_continuation_bytes(self, lead: int) -> None:
        """Consume the rest of a UTF-8 character given its lead byte."""
        if lead >= 0xF0:
            count = 3
        elif lead >= 0xE0:
            count = 2
        else:
            count = 1
        for _ in range(count):
            self._read_waiting_byte()

    def read_key(self) -> Optional[str]:
        data = self._read_waiting_byte()
        if not data:
            return None

        if data == ESCAPE:
            self._skip_escape_sequence()
            return None
        if data[0] >= 0x80:
            self._skip_continuation_bytes(data[0])
            return None
        return normalize_key(data.decode("ascii", errors="ignore"))


class WindowsKeyReader:
    """Reads keys from the Windows console."""

    def enable(self) -> None:
        pass

    def disable(self) -> None:
        pass

    def read_key(self) -> Optional[str]:
        if not msvcrt.kbhit():
            return None

        char = msvcrt.getwch()
        if char in WINDOWS_EXTENDED_PREFIXES:
            # Extended key: the scan code follows the prefix
            if msvcrt.kbhit():
                msvcrt.getwch()
            return None
        return normalize_key(char)


def default_key_reader():
    """Pick the reader for the current platform."""
    if os.name == "nt":
        return WindowsKeyReader()
    return PosixKeyReader()


class KeyPoller:
    """
    Context manager giving non-blocking access to single keystrokes.

    Entering puts the terminal into single-key mode; leaving restores it so
    line prompts work normally again.
    """

    def __init__(self, reader=None):
        self._reader = reader
        self._active = False

    @property
    def reader(self):
        if self._reader is None:
            self._reader = default_key_reader()
        return self._reader

    def __enter__(self):
        try:
            self.reader.enable()
            self._active = True
        except TERMINAL_ERRORS as e:
            logger.warning(f"Could not switch terminal to single-key mode: {e}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._active:
            try:
                self.reader.disable()
            except TERMINAL_ERRORS as e:
                logger.warning(f"Could not restore terminal mode: {e}")
            self._active = False
        return False

    def poll(self) -> Optional[str]:
        """Return the pressed key, or ``None`` if no usable key is waiting."""
        try:
            return self.reader.read_key()
        except (OSError, ValueError) as e:
            logger.debug(f"Key poll failed: {e}")
            return None
