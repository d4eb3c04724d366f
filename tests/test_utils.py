"""
Tests for TeeOutput, the --log file writer.
"""

import io
import sys
from unittest.mock import patch

from ticket_sync.utils import TeeOutput


class TestTeeOutput:

    def make_tee(self, temp_dir):
        terminal = io.StringIO()
        with patch.object(sys, "stdout", terminal):
            tee = TeeOutput(temp_dir / "logs" / "sync.log")
        return tee, terminal

    def test_writes_to_both(self, temp_dir):
        tee, terminal = self.make_tee(temp_dir)

        tee.write("OK: log.txt\n")
        tee.close()

        assert terminal.getvalue() == "OK: log.txt\n"
        assert "OK: log.txt" in (temp_dir / "logs" / "sync.log").read_text()

    def test_ansi_codes_stripped_from_log(self, temp_dir):
        tee, terminal = self.make_tee(temp_dir)

        tee.write("\x1b[32mOK\x1b[0m\n")
        tee.close()

        log = (temp_dir / "logs" / "sync.log").read_text()
        assert "\x1b[" not in log
        assert "OK" in log
        assert "\x1b[32m" in terminal.getvalue()

    def test_carriage_return_keeps_last_version(self, temp_dir):
        """Progress lines rewritten with \\r are logged once, in final form."""
        tee, _ = self.make_tee(temp_dir)

        tee.write("10%\r50%\r100%")
        tee.write("\n")
        tee.close()

        log = (temp_dir / "logs" / "sync.log").read_text()
        assert "100%" in log
        assert "50%" not in log

    def test_partial_line_flushed_on_close(self, temp_dir):
        tee, _ = self.make_tee(temp_dir)

        tee.write("no newline")
        tee.close()

        assert "no newline" in (temp_dir / "logs" / "sync.log").read_text()
