"""Tests for judge implementations.

Shared behaviour (_parse, prompt building, _call_with_retry) lives in
BaseJudge and is tested once via a lightweight stub. Provider-specific tests
cover only the SDK client setup.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from reviewkit_core.checklists.base import Hit, JudgmentRule
from reviewkit_core.context import parse_context
from reviewkit_core.models import Artifact, Severity
from reviewkit_core.providers.anthropic import AnthropicJudge
from reviewkit_core.providers.base import BaseJudge
from reviewkit_core.providers.openai import OpenAIJudge

VALID_JSON = json.dumps([{"line": 3, "evidence": "Reads the dropped column"}])

RULE = JudgmentRule(
    id="MIG-J01",
    title="Rollout is not backward compatible",
    category="Deployment safety",
    severity=Severity.HIGH,
    question="Can the previous application version run against the migrated schema?",
)
ARTIFACT = Artifact(
    file="db/0003.sql",
    kind="sql",
    snippet="ALTER TABLE users DROP COLUMN name;",
    line=2,
    lines=((2, "ALTER TABLE users DROP COLUMN name;"),),
    removed=("-- old",),
    status="modified",
)


class _StubJudge(BaseJudge):
    def __init__(self, reply=VALID_JSON):
        self.reply = reply

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        return self.reply


class TestParse:
    def test_parses_valid_json(self):
        assert _StubJudge()._parse(VALID_JSON, ARTIFACT) == [Hit("db/0003.sql", 3, "Reads the dropped column")]

    def test_strips_markdown_code_fences(self):
        assert len(_StubJudge()._parse(f"```json\n{VALID_JSON}\n```", ARTIFACT)) == 1

    def test_empty_list_means_no_violation(self):
        assert _StubJudge()._parse("[]", ARTIFACT) == []

    def test_unusable_answers_return_none(self):
        assert _StubJudge()._parse("not json at all", ARTIFACT) is None
        assert _StubJudge()._parse('{"line": 3}', ARTIFACT) is None

    def test_bad_line_falls_back_to_artifact_line(self):
        raw = json.dumps([{"line": "three", "evidence": "x"}, {"evidence": "y"}, {"line": 4}])
        assert _StubJudge()._parse(raw, ARTIFACT) == [Hit("db/0003.sql", 2, "x"), Hit("db/0003.sql", 2, "y")]


class TestPrompts:
    def test_system_prompt_names_the_question(self):
        prompt = _StubJudge()._build_system_prompt(RULE)
        assert "MIG-J01" in prompt
        assert RULE.question in prompt

    def test_user_prompt_contains_file_lines_and_context(self):
        prompt = _StubJudge()._build_user_prompt(RULE, ARTIFACT, parse_context("PostgreSQL 14"))
        assert "db/0003.sql" in prompt
        assert "    2  ALTER TABLE users DROP COLUMN name;" in prompt
        assert "-- old" in prompt
        assert "database: postgresql 14" in prompt

    def test_evaluate_goes_through_the_api(self):
        assert _StubJudge().evaluate(RULE, ARTIFACT, parse_context("")) == [
            Hit("db/0003.sql", 3, "Reads the dropped column")
        ]


class TestRetry:
    def test_returns_none_after_max_retries(self):
        class _AlwaysFail(BaseJudge):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                raise RuntimeError("network error")

        with patch("reviewkit_core.providers.base.time.sleep") as sleep:
            assert _AlwaysFail().evaluate(RULE, ARTIFACT, parse_context("")) is None
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_retries_on_transient_failure(self):
        call_count = 0

        class _FailOnceThenSucceed(BaseJudge):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                nonlocal call_count
                call_count += 1
                if call_count == 1:
                    raise RuntimeError("transient")
                return VALID_JSON

        with patch("reviewkit_core.providers.base.time.sleep"):
            result = _FailOnceThenSucceed().evaluate(RULE, ARTIFACT, parse_context(""))
        assert len(result) == 1
        assert call_count == 2


class TestAnthropicJudge:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError):
                AnthropicJudge(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicJudge.MODEL

    def test_verdicts_are_deterministic(self):
        assert AnthropicJudge.TEMPERATURE == 0.0

    def test_configured_model_and_text_blocks(self):
        sdk = MagicMock()
        with patch.dict("sys.modules", {"anthropic": sdk}):
            judge = AnthropicJudge(api_key="key", model="claude-custom")
        text = MagicMock(type="text", text=" [] ")
        judge.client.messages.create.return_value = MagicMock(content=[MagicMock(type="tool_use"), text])
        assert judge._call_api("sys", "user") == "[]"
        assert judge.client.messages.create.call_args.kwargs["model"] == "claude-custom"


class TestOpenAIJudge:
    def test_raises_import_error_without_sdk(self):
        with patch("reviewkit_core.providers.openai._OpenAI", None):
            with pytest.raises(ImportError):
                OpenAIJudge(api_key="key")

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIJudge.MODEL

    def test_verdicts_are_deterministic(self):
        assert OpenAIJudge.TEMPERATURE == 0.0

    def test_default_model_used_when_unset(self):
        with patch("reviewkit_core.providers.openai._OpenAI", MagicMock()):
            judge = OpenAIJudge(api_key="key")
        judge.client.chat.completions.create.return_value = MagicMock(choices=[])
        assert judge._call_api("sys", "user") == ""
        assert judge.client.chat.completions.create.call_args.kwargs["model"] == OpenAIJudge.MODEL
