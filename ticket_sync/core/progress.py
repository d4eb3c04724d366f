"""
Thread-safe progress output for sync passes.
"""

import threading


class ProgressTracker:
    """
    Serializes user-facing output.

    Transfers may finish on worker threads, so every message goes through
    one lock to keep lines from interleaving.
    """

    def __init__(self, quiet: bool = False):
        self.lock = threading.Lock()
        self.quiet = quiet

    def write(self, msg: str):
        """Write a message (thread-safe)."""
        if self.quiet:
            return
        with self.lock:
            print(msg)
