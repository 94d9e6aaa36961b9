import pytest

from recovery_core.domain.milestones import (
    MILESTONES,
    MilestoneDefinition,
    get_milestone,
    milestone_for_days,
    validate_catalog,
)


def test_catalog_is_strictly_ascending():
    thresholds = [entry.days for entry in MILESTONES]
    assert thresholds == sorted(thresholds)
    assert len(set(thresholds)) == len(thresholds)
    assert thresholds[0] == 1
    assert thresholds[-1] == 9131
    assert len(MILESTONES) == 15


def test_validate_catalog_rejects_out_of_order_entries():
    entries = [
        MilestoneDefinition(id="a", label="A", emoji="", days=30, description=""),
        MilestoneDefinition(id="b", label="B", emoji="", days=30, description=""),
    ]
    with pytest.raises(ValueError):
        validate_catalog(entries)


def test_validate_catalog_rejects_non_positive_thresholds():
    with pytest.raises(ValueError):
        validate_catalog([MilestoneDefinition(id="z", label="Z", emoji="", days=0, description="")])


def test_lookup_helpers():
    thirty = get_milestone("30d")
    assert thirty is not None
    assert thirty.label == "30 Days"
    assert thirty.shop_link is not None
    assert get_milestone("missing") is None

    assert milestone_for_days(0) is None
    assert milestone_for_days(29).id == "1w"
    assert milestone_for_days(30).id == "30d"
    assert milestone_for_days(100_000).id == "25y"


def test_milestone_payload_uses_camel_case_shop_link():
    payload = get_milestone("1y").as_payload()
    assert payload["days"] == 365
    assert payload["shopLink"] == {"label": "Shop 1-Year Tokens", "href": "/collections"}
    assert "shopLink" not in get_milestone("1w").as_payload()
