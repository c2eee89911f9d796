from fedplanner.components.insights import generate_insights


def test_insights_rule_based():
    results = {
        "applicable": True,
        "inputs": {"desired_fire_age": 55.0},
        "outcomes": {
            "probability_funds_last_to_end_age": 0.9,
            "probability_fire_by_desired_age": 0.7,
            "balance_at_desired_fire_age": {"p10": 500000, "p50": 1000000, "p90": 1500000},
        },
    }
    text = generate_insights(results)
    assert "high chance of success" in text.lower()
    assert "$1,000,000" in text
    assert "age 55" in text

    results_mid = {"outcomes": {"probability_funds_last_to_end_age": 0.7}}
    assert "moderate chance of success" in generate_insights(results_mid).lower()

    results_low = {"outcomes": {"probability_funds_last_to_end_age": 0.5, "balance_at_desired_fire_age": None}}
    text_low = generate_insights(results_low).lower()
    assert "plan may be at risk" in text_low
    assert "median" not in text_low


def test_insights_not_applicable():
    text = generate_insights({"applicable": False, "outcomes": {}})
    assert "fire income goal" in text.lower()
