"""Tests for the error micro API."""

import pytest

from .lib import TranspileError, report_issue


class TestTranspileError:
    """Tests for TranspileError."""

    @pytest.mark.unit
    def test_message_is_kept(self):
        """The bare message stays available next to the prefixed str()."""
        error = TranspileError("Cannot read imageRef abc")
        assert error.message == "Cannot read imageRef abc"
        assert str(error) == "Transpile failure: Cannot read imageRef abc"

    @pytest.mark.unit
    def test_is_exception(self):
        """TranspileError can be raised and caught as an Exception."""
        with pytest.raises(Exception, match="Transpile failure"):
            raise TranspileError("boom")


class TestReportIssue:
    """Tests for report_issue."""

    @pytest.mark.unit
    def test_forwards_fatal(self):
        """Fatal issues reach the reporter with is_fatal=True."""
        seen = []
        report_issue(lambda msg, fatal: seen.append((msg, fatal)), TranspileError("x"))
        assert seen == [("Transpile failure: x", True)]

    @pytest.mark.unit
    def test_forwards_plain_message(self):
        """Plain strings are accepted and can be non-fatal."""
        seen = []
        report_issue(lambda msg, fatal: seen.append((msg, fatal)), "note", is_fatal=False)
        assert seen == [("note", False)]
