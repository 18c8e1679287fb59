# test_models.py
import unittest
from datetime import date

from errors import InvalidDateRange
from models import (
    Aggregate,
    Commit,
    CommitStats,
    DateRange,
    FileChange,
    Report,
    RepositoryIdentity,
    Signature,
)


def make_commit(sha="abc1234567", message="Add login\n\nUses OAuth tokens"):
    author = Signature("Alice", "alice@example.com", "2025-01-15T10:30:00Z")
    return Commit(
        id=sha,
        message=message,
        author=author,
        committer=author,
        changed_files=(FileChange("src/auth/login.js", "added", 10, 2, 12),),
        stats=CommitStats(10, 2, 12),
    )


class TestCommit(unittest.TestCase):

    def test_stats_total_checked_at_construction(self):
        with self.assertRaises(ValueError):
            CommitStats(additions=3, deletions=2, total=4)

    def test_title_and_body(self):
        commit = make_commit()
        self.assertEqual(commit.title, "Add login")
        self.assertEqual(commit.body, "Uses OAuth tokens")
        self.assertEqual(make_commit(message="one line").body, "")

    def test_short_id_and_net_changes(self):
        commit = make_commit()
        self.assertEqual(commit.short_id, "abc1234")
        self.assertEqual(commit.net_changes, 8)

    def test_commit_is_immutable(self):
        commit = make_commit()
        with self.assertRaises(Exception):
            commit.message = "changed"

    def test_dict_round_trip(self):
        commit = make_commit()
        self.assertEqual(Commit.from_dict(commit.to_dict()), commit)

    def test_signature_accepts_date_key(self):
        sig = Signature.from_dict({"name": "Bob", "date": "2025-01-01T00:00:00Z"})
        self.assertEqual(sig.timestamp, "2025-01-01T00:00:00Z")
        self.assertEqual(sig.email, "")


class TestDateRange(unittest.TestCase):

    def test_parse_single_day(self):
        dr = DateRange.parse("2025-01-15")
        self.assertTrue(dr.is_single_day)
        self.assertEqual(dr.label, "2025-01-15")
        self.assertEqual(dr.token, "2025-01-15")

    def test_parse_range(self):
        dr = DateRange.parse("2025-01-01", "2025-01-05")
        self.assertEqual(dr.label, "2025-01-01 to 2025-01-05")
        self.assertEqual(dr.token, "2025-01-01-to-2025-01-05")
        self.assertEqual(len(list(dr.days())), 5)

    def test_from_after_to_is_invalid(self):
        with self.assertRaises(InvalidDateRange):
            DateRange.parse("2025-01-05", "2025-01-01")
        with self.assertRaises(InvalidDateRange):
            DateRange(date(2025, 2, 1), date(2025, 1, 1))

    def test_unparsable_dates(self):
        for bad in ("2025-13-01", "15/01/2025", "yesterday", ""):
            with self.assertRaises(InvalidDateRange):
                DateRange.parse(bad)

    def test_dict_round_trip(self):
        dr = DateRange.parse("2025-01-01", "2025-01-05")
        self.assertEqual(dr.to_dict(), {"from": "2025-01-01", "to": "2025-01-05"})
        self.assertEqual(DateRange.from_dict(dr.to_dict()), dr)


class TestRepositoryIdentity(unittest.TestCase):

    def test_urls(self):
        identity = RepositoryIdentity("acme", "widgets")
        self.assertEqual(identity.full_name, "acme/widgets")
        self.assertEqual(identity.https_url, "https://github.com/acme/widgets")
        self.assertEqual(identity.ssh_url, "git@github.com:acme/widgets.git")
        self.assertEqual(identity.api_path(), "/repos/acme/widgets")


class TestReport(unittest.TestCase):

    def test_full_history_labels(self):
        report = Report(
            repository=RepositoryIdentity("acme", "widgets"),
            date_range=None,
            commits=(),
            aggregate=Aggregate(),
        )
        self.assertEqual(report.range_label, "all history")
        self.assertEqual(report.range_token, "all")
        self.assertIsNone(report.analysis_for(0))

    def test_dict_round_trip(self):
        report = Report(
            repository=RepositoryIdentity("acme", "widgets"),
            date_range=DateRange.parse("2025-01-15"),
            commits=(make_commit(),),
            aggregate=Aggregate(total_commits=1, total_additions=10, total_deletions=2,
                                net_changes=8, average_changes_per_commit=12),
            report_type="enhanced",
            analyses=("* Did things",),
            author_filter="alice",
            created_at="2025-01-16T09:00:00",
        )
        self.assertEqual(Report.from_dict(report.to_dict()), report)


if __name__ == "__main__":
    unittest.main()
