import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from freshrss_filter.errors import ConfigurationError
from freshrss_filter.models import (
    AppConfig,
    DatabaseSettings,
    FeedItem,
    FreshRSSSettings,
    OpenAISettings,
    ProcessAction,
    RemediationMode,
    RunOutcome,
    SchedulerSettings,
    Verdict,
)

def app_config(**overrides) -> AppConfig:
    freshrss = overrides.pop("freshrss", FreshRSSSettings(base_url="https://rss.example.com", fever_api_key="key"))
    return AppConfig(
        openai=OpenAISettings(api_key="sk-test"),
        freshrss=freshrss,
        scheduler=SchedulerSettings(),
        database=DatabaseSettings(),
        **overrides,
    )

@pytest.mark.parametrize(
    "raw_id, expected_id",
    [
        (42, "42"),
        ("42", "42"),
    ]
)
def test_feed_item_id_is_opaque_string(raw_id, expected_id):
    item = FeedItem.model_validate({"id": raw_id, "title": "Title"})

    assert item.id == expected_id

def test_feed_item_from_fever_payload():
    item = FeedItem.model_validate({
        "id": 1,
        "title": None,
        "created_on_time": 1609459200,
        "is_read": 0,
    })

    assert item.title == ""
    assert item.created_at == datetime(2021, 1, 1, tzinfo=timezone.utc)

def test_review_text_order():
    item = FeedItem(
        id="1",
        title="Title",
        author="Alice",
        content="Plain body",
        html="<div>Rich <a href='x'>body</a></div>",
    )

    lines = item.review_text.split("\n")

    assert lines[0] == "Title"
    assert lines[1] == "by Alice"
    assert lines[2] == "Plain body"
    assert "<" not in lines[3]
    assert "Rich" in lines[3] and "body" in lines[3]

@pytest.mark.parametrize(
    "confidence, expected",
    [
        (-0.5, 0.0),
        (0.3, 0.3),
        (2.0, 1.0),
    ]
)
def test_verdict_confidence_is_clamped(confidence, expected):
    assert Verdict(is_ad=True, confidence=confidence).confidence == expected

@pytest.mark.parametrize("confidence", [float("nan"), float("inf"), float("-inf")])
def test_verdict_rejects_non_finite_confidence(confidence):
    with pytest.raises(ValidationError):
        Verdict(is_ad=True, confidence=confidence)

@pytest.mark.parametrize(
    "delete_mode, expected_mode",
    [
        ("mark_read", RemediationMode.MARK_READ),
        ("label", RemediationMode.LABEL),
        (" Label ", RemediationMode.LABEL),
        ("delete", RemediationMode.SOFT_DELETE),
        ("anything", RemediationMode.SOFT_DELETE),
    ]
)
def test_remediation_mode_from_delete_mode(delete_mode, expected_mode):
    assert RemediationMode.from_delete_mode(delete_mode) == expected_mode

def test_run_outcome_counts():
    outcome = RunOutcome(total=5)
    outcome.record(ProcessAction.KEPT)
    outcome.record(ProcessAction.MARKED_READ)
    outcome.record(ProcessAction.SKIPPED_EXISTS)
    outcome.record(ProcessAction.WOULD_ACT)
    outcome.record_error()

    assert outcome.reviewed == 4
    assert outcome.summary() == (
        "reviewed_items=4/5 | kept=1 marked_read=1 labeled=0 deleted=0 "
        "skipped=1 would_act=1 errors=1"
    )

def test_label_mode_without_greader_credentials_is_rejected():
    with pytest.raises(ConfigurationError):
        app_config(remediation_mode=RemediationMode.LABEL)

def test_label_mode_with_greader_credentials():
    config = app_config(
        remediation_mode=RemediationMode.LABEL,
        freshrss=FreshRSSSettings(
            base_url="https://rss.example.com",
            fever_api_key="key",
            greader_username="alice",
            greader_password="secret",
        ),
    )

    assert config.freshrss.labeling_enabled is True

def test_config_repr_hides_secrets():
    assert "sk-test" not in repr(app_config())
    assert "fever_api_key" not in repr(app_config().freshrss)
