# test_cli.py
import io
import signal
import unittest
from datetime import date
from unittest import mock

import cli
from aggregator import summarize
from config import GlobalConfig
from errors import InvalidRepositoryReference, UpstreamUnavailable
from models import DateRange, Report, ReportResult, RepositoryIdentity
from test_github_api import FakeGitHub, list_calls, make_source

REPO = "https://github.com/acme/widgets"


def make_result(content=b"report body\n"):
    report = Report(
        repository=RepositoryIdentity("acme", "widgets"),
        date_range=DateRange.parse("2025-01-15"),
        commits=(),
        aggregate=summarize([]),
    )
    return ReportResult(report=report, content=content, filename="quick-report-x.txt")


class TestBuildContext(unittest.TestCase):

    def build(self, *argv):
        args = cli.setup_parser().parse_args(["-r", REPO, *argv])
        return cli.build_context(args, GlobalConfig())

    def test_single_date(self):
        context = self.build("-d", "2025-01-15", "-f", "markdown", "--type", "enhanced")
        self.assertEqual(context.date_range, DateRange.parse("2025-01-15"))
        self.assertEqual(context.output_format, "markdown")
        self.assertEqual(context.report_type, "enhanced")

    def test_range_and_options(self):
        context = self.build("--from", "2025-01-01", "--to", "2025-01-05", "-b", "dev",
                             "--author", "alice", "--top-files", "3", "--llm", "MOCK", "--no-ai")
        self.assertEqual(context.date_range.label, "2025-01-01 to 2025-01-05")
        self.assertEqual(context.branch, "dev")
        self.assertEqual(context.author, "alice")
        self.assertEqual(context.top_files, 3)
        self.assertEqual(context.llm_id, "mock")
        self.assertTrue(context.no_ai)

    def test_defaults(self):
        context = self.build()
        self.assertEqual(context.date_range, DateRange(date.today(), date.today()))
        self.assertEqual(context.branch, GlobalConfig.DEFAULT_BRANCH)
        self.assertEqual(context.output_format, "text")
        self.assertEqual(context.report_type, "quick")
        self.assertEqual(context.top_files, 10)

    def test_all_history(self):
        self.assertIsNone(self.build("--all").date_range)

    def test_range_options_are_exclusive(self):
        with mock.patch("sys.stderr", new=io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.setup_parser().parse_args(["-r", REPO, "-d", "2025-01-15", "--all"])


class TestRunCli(unittest.TestCase):

    def run_cli(self, *argv):
        stream = io.StringIO()
        code = cli.run_cli(["-r", REPO, *argv], stream=stream)
        return code, stream.getvalue()

    @mock.patch("cli.ReportOrchestrator")
    def test_prints_report(self, orchestrator_cls):
        orchestrator_cls.return_value.run.return_value = make_result()
        code, output = self.run_cli("-d", "2025-01-15")
        self.assertEqual(code, cli.EXIT_OK)
        self.assertEqual(output, "report body\n")

    @mock.patch("cli.ReportOrchestrator")
    def test_saved_report_not_printed(self, orchestrator_cls):
        result = make_result()
        orchestrator_cls.return_value.run.return_value = ReportResult(
            result.report, result.content, result.filename, saved_path="/tmp/r.txt"
        )
        code, output = self.run_cli("--save")
        self.assertEqual(code, cli.EXIT_OK)
        self.assertEqual(output, "")

    @mock.patch("cli.ReportOrchestrator")
    def test_daily_and_single_modes(self, orchestrator_cls):
        orchestrator = orchestrator_cls.return_value
        orchestrator.run_daily.return_value = [make_result(b"day1\n"), make_result(b"day2\n")]
        orchestrator.run_single.return_value = make_result(b"single\n")

        self.assertEqual(self.run_cli("--from", "2025-01-01", "--to", "2025-01-02", "--daily")[1], "day1\nday2\n")
        self.assertEqual(self.run_cli("--commit", "abc123")[1], "single\n")
        orchestrator.run_single.assert_called_once_with("abc123")

    def test_invalid_date_exit_code(self):
        with self.assertLogs("cli", level="ERROR") as logs:
            code, output = self.run_cli("-d", "2025-02-30")
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertEqual(output, "")
        self.assertTrue(any("InvalidDateRange" in line for line in logs.output))

    def test_to_without_from(self):
        with self.assertLogs("cli", level="ERROR"):
            code, _ = self.run_cli("--to", "2025-01-05")
        self.assertEqual(code, cli.EXIT_ERROR)

    @mock.patch("cli.ReportOrchestrator")
    def test_structured_errors(self, orchestrator_cls):
        orchestrator_cls.side_effect = InvalidRepositoryReference("bad reference")
        with self.assertLogs("cli", level="ERROR"):
            self.assertEqual(self.run_cli()[0], cli.EXIT_ERROR)

        orchestrator_cls.side_effect = None
        orchestrator_cls.return_value.run.side_effect = UpstreamUnavailable("page 1 failed")
        with self.assertLogs("cli", level="ERROR"):
            self.assertEqual(self.run_cli()[0], cli.EXIT_ERROR)

    @mock.patch("cli.ReportOrchestrator")
    def test_keyboard_interrupt(self, orchestrator_cls):
        orchestrator_cls.return_value.run.side_effect = KeyboardInterrupt
        code, _ = self.run_cli()
        self.assertEqual(code, cli.EXIT_INTERRUPTED)


class TestInterrupt(unittest.TestCase):
    """Ctrl+C 在获取过程中到达：停止请求，已获取的提交照常出报告"""

    def run_with_source(self, source):
        stream = io.StringIO()
        with mock.patch("orchestrator.get_data_source", return_value=source):
            code = cli.run_cli(["-r", REPO, "-d", "2025-01-15"], stream=stream)
        return code, stream.getvalue()

    def test_interrupt_reports_commits_fetched_so_far(self):
        def interrupt_on_b(sha):
            if sha == "b":
                signal.raise_signal(signal.SIGINT)

        github = FakeGitHub(pages=[["a", "b"], ["c", "d"]], on_detail=interrupt_on_b)
        source, session = make_source(github, per_page=2)
        before = signal.getsignal(signal.SIGINT)

        code, output = self.run_with_source(source)

        self.assertEqual(code, cli.EXIT_INTERRUPTED)
        self.assertIn("Commit 1: Commit a", output)
        self.assertIn("Commit 2: Commit b", output)
        self.assertNotIn("Commit c", output)
        self.assertEqual(len(list_calls(session)), 1)
        self.assertIs(signal.getsignal(signal.SIGINT), before)

    def test_second_interrupt_aborts(self):
        def interrupt_twice(sha):
            signal.raise_signal(signal.SIGINT)
            signal.raise_signal(signal.SIGINT)

        source, session = make_source(FakeGitHub(pages=[["a", "b"]], on_detail=interrupt_twice), per_page=2)
        before = signal.getsignal(signal.SIGINT)

        code, output = self.run_with_source(source)

        self.assertEqual(code, cli.EXIT_INTERRUPTED)
        self.assertEqual(output, "")
        self.assertTrue(session.closed)
        self.assertIs(signal.getsignal(signal.SIGINT), before)


if __name__ == "__main__":
    unittest.main()
