from address_resolution.components import AddressRecord
from address_resolution.scorer import customer_name_score, score, score_breakdown


def build_record(street="123 Main St", city="Chicago", state="IL", **kwargs):
    return AddressRecord(id=kwargs.pop("id", 1), customer_name=kwargs.pop("customer_name", "Acme"), street=street, city=city, state=state, **kwargs)


def test_exact_match_collects_every_text_bonus():
    record = build_record()
    text = "123 main st chicago il"
    breakdown = score_breakdown(text, text, record)
    assert breakdown.contributions["exact"] == 100.0
    assert breakdown.contributions["prefix"] == 50.0
    assert breakdown.contributions["substring"] == 30.0
    assert "length_penalty" not in breakdown.contributions


def test_token_prefix_and_contains_both_count():
    record = build_record()
    # "main" starts "main" (+20) and is contained in it (+10)
    breakdown = score_breakdown("main", "main", record)
    assert breakdown.contributions["tokens"] == 30.0
    # "ain" is only contained
    breakdown = score_breakdown("ain", "main", record)
    assert breakdown.contributions["tokens"] == 10.0


def test_default_bonus_depends_on_side():
    record = build_record(is_default_pickup=True)
    pickup = score_breakdown("main", "123 main st", record, is_pickup=True)
    drop = score_breakdown("main", "123 main st", record, is_pickup=False)
    assert pickup.contributions["default_location"] == 25.0
    assert "default_location" not in drop.contributions
    assert pickup.score - drop.score == 25.0


def test_named_location_bonus():
    named = build_record(location_name="North Dock")
    assert score_breakdown("zz", "zz", named).contributions["named_location"] == 15.0
    assert "named_location" not in score_breakdown("zz", "zz", build_record()).contributions


def test_score_is_never_negative():
    record = build_record()
    long_text = "completely unrelated warehouse somewhere far away"
    breakdown = score_breakdown("q", long_text, record)
    assert breakdown.raw_score < 0
    assert breakdown.score == 0.0


def test_exact_match_scores_at_least_any_other_candidate():
    record = build_record()
    query = "123 main st"
    exact = score(query, query, record)
    for other in ["123 main", "123 main st chicago", "456 main st", "main st 123", "123 main street"]:
        assert exact >= score(query, other, record)


def test_customer_name_score_prefers_prefix():
    assert customer_name_score("acme", "Acme Foods") >= 90.0
    assert customer_name_score("ACME FOODS", "acme foods") == 100.0
    assert customer_name_score("acme", "Zenith Logistics") < 65.0
    assert customer_name_score("", "Acme") == 0.0
