"""
Shared utilities for Ticket Sync.
"""

import re
import sys
from datetime import datetime
from pathlib import Path


class TeeOutput:
    """Write to both stdout and a log file, timestamping each logged line."""

    _ANSI_RE = re.compile(r"\x1b\[[0-9;]*[mKHJ]")

    def __init__(self, log_path: Path):
        self.terminal = sys.stdout
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        self.log_file = open(log_path, "a", encoding="utf-8")
        self._line_buffer = ""
        self.log_file.write(f"\n{'='*60}\n")
        self.log_file.write(f"Session started: {datetime.now().isoformat()}\n")
        self.log_file.write(f"{'='*60}\n\n")
        self.log_file.flush()

    def write(self, message):
        self.terminal.write(message)

        self._line_buffer += self._ANSI_RE.sub("", message)

        while "\n" in self._line_buffer:
            line, self._line_buffer = self._line_buffer.split("\n", 1)
            self._log_line(line)

        # Keep only the last version of a line rewritten with \r
        if "\r" in self._line_buffer:
            self._line_buffer = self._line_buffer.rsplit("\r", 1)[-1]

        self.log_file.flush()

    def _log_line(self, line: str):
        stripped = line.rstrip()
        if stripped:
            timestamp = datetime.now().strftime("[%H:%M:%S]")
            self.log_file.write(f"{timestamp} {stripped}\n")

    def flush(self):
        self.terminal.flush()
        self.log_file.flush()

    def close(self):
        if self._line_buffer.strip():
            self._log_line(self._line_buffer)
        self._line_buffer = ""
        self.log_file.close()
