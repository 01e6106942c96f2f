import json
from unittest.mock import Mock

import pytest

from farmbot.schemas.conversation import ConversationState, HistoryTurn, RecordKind
from farmbot.services.extraction_parser import ExtractionError, MalformedExtractionError
from farmbot.services.extraction_service import (
    LLMExtractor,
    build_llm_provider,
    build_messages,
    build_system_prompt,
)
from farmbot.services.llm import AnthropicProvider, LLMResponse, OpenAIProvider
from farmbot.services.role_router import Role


def _turns(*pairs):
    return [HistoryTurn(role=role, content=content) for role, content in pairs]


class TestBuildSystemPrompt:
    def test_contains_state_without_history_or_bookkeeping(self):
        state = ConversationState(
            eggs_band_1=120,
            saved_records=[RecordKind.EGGS],
            history=_turns(("user", "secret")),
        )
        prompt = build_system_prompt(Role.PRIMARY_REPORTER, state)

        assert '"eggs_band_1": 120' in prompt
        assert "saved_records" not in prompt
        assert "secret" not in prompt

    def test_role_specific_checklist(self):
        state = ConversationState()
        assert "sales_qty" in build_system_prompt(Role.SELLER, state)
        assert "expense_category" in build_system_prompt(Role.EXPENSE_MANAGER, state)
        assert "eggs_band_3" in build_system_prompt(Role.PRIMARY_REPORTER, state)


class TestBuildMessages:
    def test_appends_new_utterance(self):
        messages = build_messages(_turns(("user", "a"), ("assistant", "b")), "c")
        assert messages == [
            {"role": "user", "content": "a"},
            {"role": "assistant", "content": "b"},
            {"role": "user", "content": "c"},
        ]

    def test_window_starts_on_user_turn(self):
        history = _turns(("user", "1"), ("assistant", "2"), ("user", "3"), ("assistant", "4"))
        messages = build_messages(history, "5", limit=3)
        assert [m["content"] for m in messages] == ["3", "4", "5"]

    def test_zero_limit(self):
        assert build_messages(_turns(("user", "1")), "2", limit=0) == [{"role": "user", "content": "2"}]


class TestLLMExtractor:
    def test_extract_parses_provider_output(self):
        provider = Mock()
        provider.generate.return_value = LLMResponse(
            content=json.dumps({"updated_state": {"eggs_band_1": 120}, "reply": "Et la bande 2 ?"}),
            model="m",
        )
        extractor = LLMExtractor(provider, model="claude-test", timeout_seconds=7)

        result = extractor.extract(
            Role.PRIMARY_REPORTER,
            ConversationState(),
            "120",
            history=_turns(("user", "bonjour"), ("assistant", "Combien d'oeufs ?")),
        )

        assert result.state.eggs_band_1 == 120
        assert result.reply == "Et la bande 2 ?"
        kwargs = provider.generate.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["timeout_seconds"] == 7
        assert kwargs["prefill"] == "{"
        assert kwargs["messages"][-1] == {"role": "user", "content": "120"}
        assert len(kwargs["messages"]) == 3

    def test_provider_failure_is_extraction_error(self):
        provider = Mock()
        provider.generate.side_effect = TimeoutError("read timeout")

        with pytest.raises(ExtractionError) as exc_info:
            LLMExtractor(provider).extract(Role.SELLER, ConversationState(), "10 alvéoles")

        assert not isinstance(exc_info.value, MalformedExtractionError)

    def test_unparseable_output_is_malformed(self):
        provider = Mock()
        provider.generate.return_value = LLMResponse(content="{désolé", model="m")

        with pytest.raises(MalformedExtractionError):
            LLMExtractor(provider).extract(Role.SELLER, ConversationState(), "10")


class TestBuildLLMProvider:
    def test_anthropic_default(self):
        assert isinstance(build_llm_provider("", "k"), AnthropicProvider)
        assert isinstance(build_llm_provider("Anthropic", "k"), AnthropicProvider)

    def test_openai(self):
        assert isinstance(build_llm_provider("openai", "k"), OpenAIProvider)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_llm_provider("mistral", "k")
