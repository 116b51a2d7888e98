"""
Тесты анализа документов базы знаний
"""

import pytest
from unittest.mock import AsyncMock, Mock

from airlab.services.ai_analyzer import (
    AIAnalyzer, basic_analysis, build_knowledge_text, detect_document_type,
    assess_importance, extract_summary, parse_ai_response
)
from airlab.services.openai_service import OpenAIServiceError


def make_openai(configured=True, reply=None, error=None):
    service = Mock()
    service.is_configured = configured
    service.chat_completion = AsyncMock(return_value=reply, side_effect=error)
    return service


class TestBasicAnalysis:
    """Анализ без AI детерминирован"""

    @pytest.mark.parametrize("text,expected", [
        ("Meeting agenda for Monday", "meeting"),
        ("Technical specification of the API", "specification"),
        ("Quarterly report", "report"),
        ("Marketing plan", "plan"),
        ("Просто заметки", "general"),
    ])
    def test_document_type(self, text, expected):
        assert detect_document_type(text) == expected

    def test_importance(self):
        assert assess_importance("urgent fix", 10) == "high"
        assert assess_importance("text", 2500) == "high"
        assert assess_importance("text", 100) == "low"
        assert assess_importance("text", 1000) == "medium"

    def test_summary_takes_two_sentences(self):
        content = "Первое длинное предложение. Второе длинное предложение. Третье длинное предложение."
        summary = extract_summary(content)
        assert summary == "Первое длинное предложение. Второе длинное предложение..."

    def test_key_points_and_topics(self):
        content = "1. Собрать требования\n2. Сделать дизайн\n- проверить результаты\nproject planning"
        analysis = basic_analysis(content, "План")
        assert analysis.key_points[:2] == ["1. Собрать требования", "2. Сделать дизайн"]
        assert "- проверить результаты" in analysis.key_points
        assert "project" in analysis.topics
        assert analysis.source == "basic"
        assert analysis.estimated_read_time == 1

    def test_key_points_fall_back_to_title(self):
        analysis = basic_analysis("Сплошной текст без списков", "Заметка")
        assert analysis.key_points == ["Заметка"]


class TestParseAIResponse:

    def test_plain_json(self):
        assert parse_ai_response('{"summary": "ok"}') == {"summary": "ok"}

    def test_fenced_json(self):
        raw = 'Вот результат:\n```json\n{"summary": "ok", "topics": ["a"]}\n```'
        assert parse_ai_response(raw)["topics"] == ["a"]

    def test_invalid(self):
        assert parse_ai_response("not json") is None
        assert parse_ai_response("") is None
        assert parse_ai_response("[1, 2]") is None


class TestAIAnalyzer:

    @pytest.mark.asyncio
    async def test_without_openai_uses_basic(self):
        analyzer = AIAnalyzer(make_openai(configured=False))
        analysis = await analyzer.analyze_document("Meeting notes for the team", "Notes")
        assert analysis.source == "basic"
        assert analysis.document_type == "meeting"

    @pytest.mark.asyncio
    async def test_ai_result(self):
        reply = (
            '{"summary": "Кратко", "keyPoints": ["a", "b", "c", "d", "e", "f"], '
            '"topics": ["x"], "documentType": "report", "importance": "high"}'
        )
        openai = make_openai(reply=reply)
        analysis = await AIAnalyzer(openai, model="gpt-test").analyze_document("Текст документа", "Док")

        assert analysis.source == "ai"
        assert analysis.summary == "Кратко"
        assert len(analysis.key_points) == 5
        assert analysis.document_type == "report"
        assert openai.chat_completion.call_args.kwargs["model"] == "gpt-test"

    @pytest.mark.asyncio
    async def test_unknown_values_are_normalized(self):
        reply = '{"summary": "s", "documentType": "poem", "importance": "extreme"}'
        analysis = await AIAnalyzer(make_openai(reply=reply)).analyze_document("text", "t")
        assert analysis.document_type == "general"
        assert analysis.importance == "medium"

    @pytest.mark.asyncio
    async def test_unparsable_falls_back(self):
        analysis = await AIAnalyzer(make_openai(reply="no json here")).analyze_document("report text", "t")
        assert analysis.source == "basic"

    @pytest.mark.asyncio
    async def test_api_error_falls_back(self):
        openai = make_openai(error=OpenAIServiceError("rate limit"))
        analysis = await AIAnalyzer(openai).analyze_document("report text", "t")
        assert analysis.source == "basic"


def test_build_knowledge_text():
    analysis = basic_analysis("1. Пункт один\nОписание проекта.", "Проект")
    text = build_knowledge_text("Проект", analysis, "полный текст")
    assert text.startswith("# Проект")
    assert "## Key points" in text
    assert text.endswith("## Content\nполный текст")
