"""Tests for the content analyzer and its response parsers."""

import pytest

from tabvault.db.categories import CategoryStore
from tabvault.db.settings import SettingsStore
from tabvault.db.usage import UsageRecorder
from tabvault.exceptions import ProviderError
from tabvault.generation import (
    ContentAnalyzer,
    clamp_score,
    clean_display_title,
    clean_summary,
    extract_json,
    normalize_tags,
    parse_categorization,
    parse_insights,
    parse_scores,
)
from tabvault.models import DEFAULT_CATEGORIES, Category

from .conftest import PAGE_TEXT, FakeLLMProvider, RecordingLedger


def test_extract_json_handles_code_fences_and_chatter():
    text = 'Sure! Here you go:\n```json\n{"category": "news", "tags": []}\n```'
    assert extract_json(text) == {"category": "news", "tags": []}
    assert extract_json("not json at all") is None
    assert extract_json("{broken") is None
    assert extract_json(None) is None


def test_normalize_tags_lowercases_and_dedupes():
    tags = normalize_tags(["Python", " python ", "#AsyncIO", "", 42, "Web  Dev", "extra", "more"])
    assert tags == ["python", "asyncio", "web dev", "extra"]
    assert normalize_tags("python") == []


def test_parse_categorization_valid_response():
    result = parse_categorization(
        '{"category": "News", "tags": ["AI", "ai", "Launch"]}', DEFAULT_CATEGORIES, "reference"
    )
    assert result.category == "news"
    assert result.tags == ["ai", "launch"]


def test_parse_categorization_malformed_uses_fallback_and_no_tags():
    result = parse_categorization("I think this is learning.", DEFAULT_CATEGORIES, "reference")
    assert result.category == "reference"
    assert result.tags == []


def test_parse_categorization_unknown_category_uses_fallback_but_keeps_tags():
    result = parse_categorization(
        '{"category": "recipes", "tags": ["cooking"]}', DEFAULT_CATEGORIES, "reference"
    )
    assert result.category == "reference"
    assert result.tags == ["cooking"]


@pytest.mark.parametrize(
    "value,expected",
    [
        (7, 7),
        ("8", 8),
        (12, 10),
        (0, 1),
        (-3, 1),
        (6.9, 6),
        ("high", 5),
        (None, 5),
        (True, 5),
        ("1e9", 10),
    ],
)
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


def test_parse_scores_defaults_to_neutral_on_garbage():
    scores = parse_scores("quality is great")
    assert (scores.quality, scores.actionability) == (5, 5)

    scores = parse_scores('{"quality": 42, "actionability": "x"}')
    assert (scores.quality, scores.actionability) == (10, 5)


def test_clean_summary_strips_markdown():
    assert clean_summary("## Summary: **Fast** `asyncio` tips.\n\nMore  text.") == (
        "Fast asyncio tips. More text."
    )


def test_clean_display_title_rules():
    assert clean_display_title('"Title: A Guide to Asyncio"') == "A Guide to Asyncio"
    assert clean_display_title("(3) Guide https://example.com/a") == "Guide"
    assert clean_display_title("   ") is None
    assert clean_display_title("https://example.com") is None

    long_title = clean_display_title("word " * 40)
    assert len(long_title) <= 80
    assert long_title.endswith("...")


def test_parse_insights_json_and_bullet_fallback():
    insights = parse_insights(
        '{"takeaways": ["a", "b", "c", "d", "e", "f"], "actions": ["x", "y", "z", "w"]}'
    )
    assert insights.takeaways == ["a", "b", "c", "d", "e"]
    assert insights.action_items == ["x", "y", "z"]

    insights = parse_insights("- first point\n* second point\n1. third point\nnoise")
    assert insights.takeaways == ["first point", "second point", "third point"]
    assert insights.action_items == []

    insights = parse_insights("nothing useful")
    assert insights.takeaways == [] and insights.action_items == []


@pytest.mark.asyncio
async def test_analyze_produces_every_field(llm):
    analyzer = ContentAnalyzer(llm)
    result = await analyzer.analyze("Async Python", PAGE_TEXT, "cap-1")

    assert result.errors == []
    assert result.summary.startswith("Async Python runs many network calls")
    assert result.category == "learning"
    assert result.tags == ["python", "asyncio"]
    assert result.quality_score == 10
    assert result.actionability_score == 7
    assert result.display_title == "Async Python: A Practical Guide"
    assert result.key_takeaways == ["Event loops schedule tasks", "Cancel with care", "Use timeouts"]
    assert result.action_items == ["Add timeouts to clients"]


@pytest.mark.asyncio
async def test_score_runs_after_summary_and_uses_it(llm):
    analyzer = ContentAnalyzer(llm)
    await analyzer.analyze("Async Python", PAGE_TEXT, "cap-1")

    operations = llm.operations()
    assert operations[-1] == "score"
    assert sorted(operations[:-1]) == ["categorize", "insights", "summarize", "title"]
    score_call = llm.calls[-1]
    assert "Summary: Async Python runs many network calls" in score_call["user"]
    assert "Category: learning" in score_call["user"]


@pytest.mark.asyncio
async def test_failed_subcall_leaves_only_its_fields_empty():
    llm = FakeLLMProvider({"summarize": ProviderError("rate limited")})
    result = await ContentAnalyzer(llm).analyze("Async Python", PAGE_TEXT, "cap-1")

    assert result.summary is None
    assert any(error.startswith("summarize") for error in result.errors)
    assert result.category == "learning"
    # scoring falls back to a content prefix when there is no summary
    assert result.quality_score == 10
    assert "summary" not in result.to_update()
    assert "errors" not in result.to_update()


@pytest.mark.asyncio
async def test_categorize_uses_dynamic_categories():
    class StaticCategories(CategoryStore):
        async def get_categories(self):
            return [Category(name="recipes", description="Cooking"), Category(name="misc")]

    llm = FakeLLMProvider({"categorize": '{"category": "recipes", "tags": ["Soup"]}'})
    analyzer = ContentAnalyzer(llm, category_store=StaticCategories(), fallback_category="misc")
    result = await analyzer.categorize("Soup", "How to make soup")

    assert result.category == "recipes"
    assert result.tags == ["soup"]
    system_prompt = llm.calls[0]["system"]
    assert "- recipes: Cooking" in system_prompt
    assert "- misc" in system_prompt
    assert '"category": "recipes"' in system_prompt


@pytest.mark.asyncio
async def test_selected_model_is_used_for_every_call(llm):
    analyzer = ContentAnalyzer(llm, settings_store=SettingsStore(default_model="gpt-4o-mini"))
    await analyzer.analyze("Async Python", PAGE_TEXT, "cap-1")

    assert {call["model"] for call in llm.calls} == {"openai/gpt-4o-mini"}
    assert {call["max_tokens"] for call in llm.calls} == {500}
    assert {call["temperature"] for call in llm.calls} == {0.3}


@pytest.mark.asyncio
async def test_usage_is_recorded_per_call(llm):
    ledger = RecordingLedger()
    usage = UsageRecorder(ledger)
    await ContentAnalyzer(llm, usage=usage).analyze("Async Python", PAGE_TEXT, "cap-1")
    await usage.flush()

    assert sorted(r.operation for r in ledger.records) == [
        "categorize",
        "insights",
        "score",
        "summarize",
        "title",
    ]
    assert {r.capture_id for r in ledger.records} == {"cap-1"}
    assert {r.service for r in ledger.records} == {"openrouter"}
    assert all(r.cost_cents > 0 for r in ledger.records)


@pytest.mark.asyncio
async def test_usage_ledger_failure_does_not_fail_analysis(llm):
    usage = UsageRecorder(RecordingLedger(fail=True))
    result = await ContentAnalyzer(llm, usage=usage).analyze("Async Python", PAGE_TEXT, "cap-1")
    await usage.flush()

    assert result.errors == []
    assert result.summary is not None


@pytest.mark.asyncio
async def test_empty_summary_is_an_error():
    llm = FakeLLMProvider({"summarize": "   "})
    with pytest.raises(ProviderError):
        await ContentAnalyzer(llm).summarize("Title", "content")


@pytest.mark.asyncio
async def test_display_title_falls_back_to_cleaned_original():
    llm = FakeLLMProvider({"title": "https://example.com/only-a-link"})
    title = await ContentAnalyzer(llm).generate_display_title("(2) Original Title", "content")
    assert title == "Original Title"


def test_extract_json_stops_at_end_of_first_object():
    text = '{"quality": 8, "actionability": 3}\nNote: scores use the {1-10} scale.'
    assert extract_json(text) == {"quality": 8, "actionability": 3}
    assert parse_scores(text).quality == 8
    assert extract_json('Scale {1-10}: {"quality": 7}') == {"quality": 7}
