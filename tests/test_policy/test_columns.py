"""
Tests for the column availability memo.
"""

import logging
import threading

from scopegate.policy.columns import ColumnAvailability, ColumnState


class TestColumnAvailability:
    def test_unknown_by_default(self):
        columns = ColumnAvailability()
        assert columns.state("branches", "organization_id") == ColumnState.UNKNOWN
        assert not columns.is_column_known_missing("branches", "organization_id")

    def test_mark_missing(self):
        columns = ColumnAvailability()
        assert columns.mark_column_missing("branches", "organization_id") is True
        assert columns.is_column_known_missing("branches", "organization_id")
        assert not columns.is_column_known_missing("branches", "branch_id")
        assert not columns.is_column_known_missing("quote_requests", "organization_id")

    def test_mark_missing_is_idempotent(self):
        columns = ColumnAvailability()
        columns.mark_column_missing("branches", "organization_id")
        assert columns.mark_column_missing("branches", "organization_id") is False
        assert columns.missing_columns("branches") == {"organization_id"}
        assert len(columns) == 1

    def test_missing_is_permanent(self):
        columns = ColumnAvailability()
        columns.mark_column_missing("branches", "organization_id")
        columns.mark_column_present("branches", "organization_id")
        assert columns.is_column_known_missing("branches", "organization_id")

    def test_mark_present(self):
        columns = ColumnAvailability()
        columns.mark_column_present("branches", "organization_id")
        assert columns.state("branches", "organization_id") == ColumnState.PRESENT
        assert len(columns) == 0

    def test_present_can_become_missing(self):
        columns = ColumnAvailability()
        columns.mark_column_present("branches", "organization_id")
        columns.mark_column_missing("branches", "organization_id")
        assert columns.is_column_known_missing("branches", "organization_id")

    def test_preseed(self):
        columns = ColumnAvailability()
        missing = columns.preseed(
            "branch_images",
            available_columns=["id", "organization_id", "url"],
            expected_columns=["organization_id", "branch_id"],
        )
        assert missing == ["branch_id"]
        assert columns.state("branch_images", "organization_id") == ColumnState.PRESENT
        assert columns.is_column_known_missing("branch_images", "branch_id")

    def test_clear(self):
        columns = ColumnAvailability()
        columns.mark_column_missing("branches", "organization_id")
        columns.clear()
        assert not columns.is_column_known_missing("branches", "organization_id")

    def test_instances_are_isolated(self):
        a, b = ColumnAvailability(), ColumnAvailability()
        a.mark_column_missing("branches", "organization_id")
        assert not b.is_column_known_missing("branches", "organization_id")

    def test_first_mark_logs_warning(self, caplog):
        columns = ColumnAvailability()
        with caplog.at_level(logging.WARNING, logger="scopegate"):
            columns.mark_column_missing("branches", "organization_id")
            columns.mark_column_missing("branches", "organization_id")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].resource == "branches"
        assert warnings[0].column == "organization_id"

    def test_concurrent_marks(self):
        columns = ColumnAvailability()
        results: list[bool] = []

        def mark():
            results.append(columns.mark_column_missing("branches", "organization_id"))

        threads = [threading.Thread(target=mark) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert columns.missing_columns("branches") == {"organization_id"}
