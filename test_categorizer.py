# test_categorizer.py
import os
import unittest

from categorizer import (
    AnalyzerCategorizer,
    HeuristicCategorizer,
    build_prompt,
    get_categorizer,
)
from config import GlobalConfig
from context import RunContext
from models import Commit, CommitStats, DateRange, FileChange, Signature

AUTH_HEADING = "* Authentication/Authorization changes"
BACKEND_HEADING = "* Backend functionality updates"
FRONTEND_HEADING = "* Frontend development changes"
FULL_STACK_HEADING = "* Full-stack development changes"
GENERAL_HEADING = "* General code changes and improvements"


def make_commit(message, paths, status="added", additions=10, deletions=2):
    files = tuple(FileChange(p, status, additions, deletions, additions + deletions) for p in paths)
    total_add = additions * len(files)
    total_del = deletions * len(files)
    sig = Signature("Alice", "alice@example.com", "2025-01-15T10:00:00Z")
    return Commit(
        id="0123456789abcdef",
        message=message,
        author=sig,
        committer=sig,
        changed_files=files,
        stats=CommitStats(total_add, total_del, total_add + total_del),
    )


def headings(text):
    return [line for line in text.split("\n") if line.startswith("* ")]


class TestHeuristicCategorizer(unittest.TestCase):

    def setUp(self):
        self.categorizer = HeuristicCategorizer()

    def test_auth_file_gives_auth_and_backend_only(self):
        output = self.categorizer.explain(make_commit("add auth", ["src/auth/login.js"]))
        self.assertEqual(headings(output), [AUTH_HEADING, BACKEND_HEADING])
        self.assertIn("  - Implemented or modified user authentication system", output)
        self.assertNotIn(FRONTEND_HEADING, output)
        self.assertNotIn(FULL_STACK_HEADING, output)

    def test_message_alone_triggers_auth_and_api(self):
        output = self.categorizer.explain(make_commit("Fix OAuth API client", []))
        self.assertEqual(
            headings(output), [AUTH_HEADING, "* API integration or endpoint changes"]
        )

    def test_topics_are_cumulative_and_ordered(self):
        commit = make_commit(
            "misc",
            ["tests/test_api.py", "README.md", "package.json", ".env.example"],
        )
        self.assertEqual(
            headings(self.categorizer.explain(commit)),
            [
                "* API integration or endpoint changes",
                "* Testing improvements",
                "* Documentation updates",
                "* Environment configuration changes",
                "* Dependency updates",
                BACKEND_HEADING,
            ],
        )

    def test_stack_classification_uses_extensions(self):
        full = self.categorizer.explain(make_commit("x", ["server/app.py", "web/App.vue"]))
        self.assertEqual(headings(full), [FULL_STACK_HEADING])

        front = self.categorizer.explain(make_commit("x", ["styles/main.css"]))
        self.assertEqual(headings(front), ["* UI/UX design updates", FRONTEND_HEADING])

        # 子串匹配：".jsx" 同时包含 ".js"，".json" 也包含 ".js"
        jsx = self.categorizer.explain(make_commit("x", ["src/Widget.jsx"]))
        self.assertEqual(headings(jsx), ["* UI/UX design updates", FULL_STACK_HEADING])

        manifest = self.categorizer.explain(make_commit("x", ["package.json"]))
        self.assertEqual(headings(manifest), ["* Dependency updates", BACKEND_HEADING])

    def test_general_fallback(self):
        output = self.categorizer.explain(make_commit("tweak", ["docs/notes.txt"]))
        self.assertEqual(headings(output), [GENERAL_HEADING])


class TestAnalyzerCategorizer(unittest.TestCase):

    def setUp(self):
        self.commit = make_commit("add auth", ["src/auth/login.js"])

    def test_prompt_contents(self):
        prompt = build_prompt(self.commit)
        self.assertTrue(prompt.startswith("Commit Message: add auth"))
        self.assertIn("- src/auth/login.js (added, +10 -2)", prompt)
        self.assertIn("Total Changes: +10 -2 lines", prompt)
        self.assertIn("bullet points", prompt)

    def test_uses_analyzer_output(self):
        prompts = []

        def analyzer(prompt):
            prompts.append(prompt)
            return "  * Added login flow\n"

        output = AnalyzerCategorizer(analyzer).explain(self.commit)
        self.assertEqual(output, "* Added login flow")
        self.assertEqual(prompts, [build_prompt(self.commit)])

    def test_failure_falls_back_to_heuristic(self):
        def analyzer(prompt):
            raise TimeoutError("request timed out")

        with self.assertLogs("categorizer", level="WARNING") as logs:
            output = AnalyzerCategorizer(analyzer).explain(self.commit)
        self.assertEqual(output, HeuristicCategorizer().explain(self.commit))
        self.assertTrue(any("AnalyzerUnavailable" in line for line in logs.output))

    def test_empty_or_non_text_result_falls_back(self):
        expected = HeuristicCategorizer().explain(self.commit)
        for result in ("", "   ", None, {"text": "x"}):
            with self.subTest(result=result):
                with self.assertLogs("categorizer", level="WARNING"):
                    output = AnalyzerCategorizer(lambda p: result).explain(self.commit)
                self.assertEqual(output, expected)

    def test_output_is_truncated(self):
        output = AnalyzerCategorizer(lambda p: "x" * 50, max_chars=10).explain(self.commit)
        self.assertEqual(output, "x" * 10)


class TestGetCategorizer(unittest.TestCase):

    def make_context(self, **overrides):
        config = GlobalConfig()
        config.SCRIPT_BASE_PATH = os.path.dirname(os.path.abspath(__file__))
        config.OPENAI_API_KEY = ""
        values = dict(
            repo_reference="https://github.com/acme/widgets",
            branch="main",
            date_range=DateRange.parse("2025-01-15"),
            output_format="text",
            report_type="enhanced",
            global_config=config,
            llm_id="mock",
        )
        values.update(overrides)
        return RunContext(**values)

    def test_quick_and_no_ai_use_heuristic(self):
        self.assertIsInstance(get_categorizer(self.make_context(report_type="quick")), HeuristicCategorizer)
        self.assertIsInstance(get_categorizer(self.make_context(no_ai=True)), HeuristicCategorizer)

    def test_configured_provider_gives_analyzer(self):
        categorizer = get_categorizer(self.make_context())
        self.assertIsInstance(categorizer, AnalyzerCategorizer)
        output = categorizer.explain(make_commit("add auth", ["src/auth/login.js"]))
        self.assertTrue(output.startswith("* [Mock]"))

    def test_unconfigured_provider_falls_back(self):
        with self.assertLogs("categorizer", level="WARNING"):
            categorizer = get_categorizer(self.make_context(llm_id="openai"))
        self.assertIsInstance(categorizer, HeuristicCategorizer)


if __name__ == "__main__":
    unittest.main()
