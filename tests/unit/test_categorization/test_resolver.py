"""Unit tests for CategoryResolver."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from finance_tracker.categorization.history import HistoricalSample
from finance_tracker.categorization.keywords import KeywordDictionary
from finance_tracker.categorization.resolver import (
    UNCATEGORIZED,
    CategorizationRequest,
    CategoryResolver,
    Method,
)
from finance_tracker.core.exceptions import (
    CategoryCommitError,
    HistoryUnavailableError,
    TransactionNotFoundError,
)


@pytest.fixture
def dictionary():
    return KeywordDictionary.from_mapping(
        {
            "Transporte": ["uber", "taxi"],
            "Comida": ["empanadas", "uber eats", "sushi"],
            "Suscripciones": ["netflix"],
            "Sueldo": ["sueldo"],
        },
        {
            "Transporte": "expense",
            "Comida": "expense",
            "Suscripciones": "expense",
            "Sueldo": "income",
        },
    )


@pytest.fixture
def history():
    source = AsyncMock()
    source.fetch_samples.return_value = []
    return source


@pytest.fixture
def writer():
    return AsyncMock()


@pytest.fixture
def resolver(dictionary, history, writer):
    return CategoryResolver(dictionary=dictionary, history=history, writer=writer)


def _request(description, existing=()):
    return CategorizationRequest(
        transaction_id=uuid4(),
        description=description,
        user_id=uuid4(),
        existing_category_names=list(existing),
    )


class TestCategorize:
    @pytest.mark.asyncio
    async def test_history_wins_and_is_saved(self, resolver, history, writer):
        history.fetch_samples.return_value = [
            HistoricalSample("Viajes", "uber al aeropuerto"),
            HistoricalSample("Viajes", "uber aeropuerto vuelta"),
        ]
        request = _request("Uber al aeropuerto", ["Transporte", "Viajes"])

        result = await resolver.categorize(request)

        assert result.category == "Viajes"
        assert result.confidence == 80
        assert result.method is Method.HISTORICAL
        writer.set_category.assert_awaited_once_with(
            request.transaction_id, request.user_id, "Viajes"
        )

    @pytest.mark.asyncio
    async def test_history_category_user_lacks_falls_back_to_keywords(
        self, resolver, history, writer
    ):
        history.fetch_samples.return_value = [
            HistoricalSample("Viajes", "uber al aeropuerto"),
            HistoricalSample("Viajes", "uber aeropuerto vuelta"),
        ]
        request = _request("Uber al aeropuerto", ["Transporte"])

        result = await resolver.categorize(request)

        assert result.category == "Transporte"
        assert result.method is Method.KEYWORDS
        writer.set_category.assert_awaited_once_with(
            request.transaction_id, request.user_id, "Transporte"
        )

    @pytest.mark.asyncio
    async def test_history_category_user_lacks_and_no_keywords(self, resolver, history, writer):
        history.fetch_samples.return_value = [
            HistoricalSample("Mascotas", "veterinaria xkcd"),
            HistoricalSample("Mascotas", "veterinaria xkcd"),
        ]

        result = await resolver.categorize(_request("veterinaria xkcd", ["Transporte"]))

        assert result.category == UNCATEGORIZED
        assert result.method is Method.NONE
        writer.set_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_category_uses_users_spelling(self, resolver, history):
        history.fetch_samples.return_value = [
            HistoricalSample("Mascotas", "veterinaria xkcd"),
            HistoricalSample("Mascotas", "veterinaria xkcd"),
        ]

        result = await resolver.categorize(_request("veterinaria xkcd", ["mascotas"]))

        assert result.category == "mascotas"
        assert result.method is Method.HISTORICAL

    @pytest.mark.asyncio
    async def test_history_fetch_is_bounded(self, resolver, history):
        request = _request("uber")
        await resolver.categorize(request)
        history.fetch_samples.assert_awaited_once_with(request.user_id, 100)

    @pytest.mark.asyncio
    async def test_keyword_match_mapped_to_users_spelling(self, resolver, writer):
        request = _request("Uber al aeropuerto", ["transporte", "Comida"])

        result = await resolver.categorize(request)

        # 20 * 1.5 = 30, plus 15 for an existing category, times 5, capped at 95.
        assert result.category == "transporte"
        assert result.confidence == 95
        assert result.method is Method.KEYWORDS
        writer.set_category.assert_awaited_once_with(
            request.transaction_id, request.user_id, "transporte"
        )

    @pytest.mark.asyncio
    async def test_highest_boosted_candidate_wins(self, resolver):
        result = await resolver.categorize(
            _request("uber eats sushi", ["Transporte", "Comida"])
        )
        assert result.category == "Comida"

    @pytest.mark.asyncio
    async def test_dictionary_category_user_lacks_is_refused(self, resolver, writer):
        result = await resolver.categorize(_request("Netflix", ["Transporte"]))

        assert result.category == UNCATEGORIZED
        assert result.confidence == 0
        assert result.method is Method.NONE
        writer.set_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fuzzy_only_match_is_not_committed(self, resolver, writer):
        # "empanada" only word-matches "empanadas", which is not enough to commit.
        result = await resolver.categorize(_request("empanada", ["Comida"]))
        assert result.category == UNCATEGORIZED
        writer.set_category.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("description", ["", None, "   ", "xkcd zzyzx", "¡¡!!"])
    async def test_no_match(self, resolver, writer, description):
        result = await resolver.categorize(_request(description, ["Transporte"]))
        assert result.category == UNCATEGORIZED
        assert result.confidence == 0
        assert result.method is Method.NONE
        writer.set_category.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "description",
        ["Uber al aeropuerto", "netflix", "uber eats sushi", "sueldo octubre", "empanadas", "taxi"],
    )
    async def test_result_is_existing_category_or_sentinel(self, resolver, description):
        existing = ["Transporte", "Sueldo"]
        result = await resolver.categorize(_request(description, existing))
        assert result.category in existing or result.category == UNCATEGORIZED
        assert 0 <= result.confidence <= 95

    @pytest.mark.asyncio
    async def test_custom_sentinel(self, dictionary, history, writer):
        resolver = CategoryResolver(
            dictionary, history, writer, uncategorized_label="Sin categoría"
        )
        result = await resolver.categorize(_request("xkcd"))
        assert result.category == "Sin categoría"

    @pytest.mark.asyncio
    async def test_history_failure_is_not_reported_as_no_match(self, resolver, history, writer):
        history.fetch_samples.side_effect = ConnectionError("database down")

        with pytest.raises(HistoryUnavailableError) as exc_info:
            await resolver.categorize(_request("Uber al aeropuerto", ["Transporte"]))

        assert exc_info.value.error_code == "CAT_001"
        assert exc_info.value.http_status == 502
        writer.set_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_failure_reports_chosen_category(self, resolver, writer):
        writer.set_category.side_effect = RuntimeError("write failed")

        with pytest.raises(CategoryCommitError) as exc_info:
            await resolver.categorize(_request("Uber al aeropuerto", ["Transporte"]))

        error = exc_info.value
        assert error.error_code == "CAT_002"
        assert error.category == "Transporte"
        assert error.confidence == 95
        assert error.method == "keywords"
        assert error.http_status == 500

    @pytest.mark.asyncio
    async def test_commit_to_missing_transaction(self, resolver, writer):
        writer.set_category.side_effect = TransactionNotFoundError()

        with pytest.raises(CategoryCommitError) as exc_info:
            await resolver.categorize(_request("taxi", ["Transporte"]))

        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_scoring_is_deterministic(self, resolver):
        request = _request("uber eats sushi", ["Transporte", "Comida"])
        first = await resolver.categorize(request)
        second = await resolver.categorize(request)
        assert first == second


class TestSuggest:
    @pytest.mark.asyncio
    async def test_empty_description(self, resolver, history):
        suggestion = await resolver.suggest(_request("  "))
        assert suggestion.category is None
        assert suggestion.method is Method.NONE
        assert suggestion.reasons == ["No description to categorize"]
        history.fetch_samples.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_suggestion(self, resolver, history):
        history.fetch_samples.return_value = [
            HistoricalSample("Sueldo", "sueldo empresa"),
            HistoricalSample("Sueldo", "sueldo empresa"),
            HistoricalSample("Sueldo", "sueldo empresa"),
        ]
        suggestion = await resolver.suggest(_request("Sueldo empresa", ["Sueldo"]))
        assert suggestion.category == "Sueldo"
        assert suggestion.kind == "income"
        assert suggestion.confidence == 90
        assert suggestion.method is Method.HISTORICAL

    @pytest.mark.asyncio
    async def test_new_dictionary_category(self, resolver):
        suggestion = await resolver.suggest(_request("Netflix", ["Transporte"]))
        assert suggestion.category == "Suscripciones"
        assert suggestion.is_new_category is True
        assert suggestion.method is Method.KEYWORDS
        assert suggestion.confidence == 95

    @pytest.mark.asyncio
    async def test_fuzzy_suggestion_confidence(self, resolver):
        # One significant full-word match scores 8 points.
        suggestion = await resolver.suggest(_request("empanada"))
        assert suggestion.category == "Comida"
        assert suggestion.confidence == 40
        assert suggestion.is_new_category is True

    @pytest.mark.asyncio
    async def test_existing_category_preferred(self, resolver):
        suggestion = await resolver.suggest(_request("uber eats sushi", ["comida", "Transporte"]))
        assert suggestion.category == "comida"
        assert suggestion.is_new_category is False
        assert suggestion.kind == "expense"

    @pytest.mark.asyncio
    async def test_weak_single_history_match(self, resolver, history):
        history.fetch_samples.return_value = [HistoricalSample("Mascotas", "veterinaria xkcd")]
        suggestion = await resolver.suggest(_request("veterinaria xkcd"))
        assert suggestion.category == "Mascotas"
        assert suggestion.confidence == 30
        assert suggestion.method is Method.HISTORICAL
        assert suggestion.kind is None

    @pytest.mark.asyncio
    async def test_nothing_found(self, resolver):
        suggestion = await resolver.suggest(_request("xkcd zzyzx"))
        assert suggestion.category is None
        assert suggestion.confidence == 0
        assert suggestion.method is Method.NONE

    @pytest.mark.asyncio
    async def test_suggest_never_writes(self, resolver, writer):
        await resolver.suggest(_request("Uber al aeropuerto", ["Transporte"]))
        writer.set_category.assert_not_awaited()
