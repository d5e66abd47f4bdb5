from finance_tracker.categorization.history import (
    NO_MATCH,
    HistoricalMatch,
    HistoricalSample,
    is_similar,
    match_history,
)


def _sample(category: str, description: str | None) -> HistoricalSample:
    return HistoricalSample(category=category, description=description)


def test_two_shared_tokens_are_similar() -> None:
    assert is_similar(["uber", "al", "aeropuerto"], "Uber aeropuerto SCL")


def test_short_tokens_do_not_count() -> None:
    # "al" is shorter than three characters; only "uber" is shared.
    assert not is_similar(["uber", "al", "centro"], "uber al mall")


def test_single_token_description_uses_ratio() -> None:
    assert is_similar(["netflix"], "Pago NETFLIX.com")


def test_tokens_match_as_substrings() -> None:
    assert is_similar(["super", "lider"], "superlider vitacura")


def test_empty_description_is_never_similar() -> None:
    assert not is_similar([""], "uber al aeropuerto")


def test_match_history_accepts_two_similar_samples() -> None:
    samples = [
        _sample("Transporte", "uber al aeropuerto"),
        _sample("Transporte", "Uber aeropuerto regreso"),
        _sample("Comida", "empanadas"),
    ]
    match = match_history("Uber al aeropuerto", samples)
    assert match == HistoricalMatch(category="Transporte", count=2)
    assert match.accepted
    assert match.confidence == 80


def test_single_similar_sample_is_not_accepted() -> None:
    match = match_history("Uber al aeropuerto", [_sample("Transporte", "uber aeropuerto")])
    assert match.category == "Transporte"
    assert match.count == 1
    assert not match.accepted


def test_confidence_is_capped() -> None:
    assert HistoricalMatch(category="Comida", count=2).confidence == 80
    assert HistoricalMatch(category="Comida", count=3).confidence == 90
    assert HistoricalMatch(category="Comida", count=12).confidence == 90


def test_tie_goes_to_first_category_seen() -> None:
    samples = [
        _sample("Viajes", "vuelo santiago"),
        _sample("Transporte", "vuelo santiago"),
        _sample("Transporte", "vuelo santiago"),
        _sample("Viajes", "vuelo santiago"),
    ]
    match = match_history("vuelo santiago", samples)
    assert match.category == "Viajes"
    assert match.count == 2


def test_samples_without_description_are_skipped() -> None:
    samples = [_sample("Transporte", None), _sample("Transporte", "")]
    assert match_history("uber", samples) is NO_MATCH


def test_no_samples() -> None:
    assert match_history("uber al aeropuerto", []) is NO_MATCH
    assert not NO_MATCH.accepted


def test_missing_description_never_matches() -> None:
    samples = [_sample("Transporte", "uber"), _sample("Transporte", "uber")]
    assert match_history(None, samples) is NO_MATCH
