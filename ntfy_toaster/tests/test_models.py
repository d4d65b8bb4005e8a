"""
Tests for ntfy_toaster.models
"""
import pytest

from ntfy_toaster.core.types import DecodeError, ValidationError
from ntfy_toaster.models import ConfigSnapshot, Event, Topic, decode_event


# ── Topic ─────────────────────────────────────────────────────────────────────

def test_topic_stream_url_and_trailing_slash():
    topic = Topic(key="alerts", url="https://ntfy.test/alerts/")
    assert topic.url == "https://ntfy.test/alerts"
    assert topic.stream_url == "https://ntfy.test/alerts/json"
    assert topic.host == "ntfy.test"


def test_topic_headers_with_and_without_token():
    assert Topic(key="a", url="https://ntfy.test/a").headers == {}
    assert Topic(key="a", url="https://ntfy.test/a", token="tk_123").headers == {
        "Authorization": "Bearer tk_123"
    }


def test_topic_requires_key_and_http_url():
    with pytest.raises(ValidationError, match="key"):
        Topic(key="", url="https://ntfy.test/a")
    with pytest.raises(ValidationError, match="URL is required"):
        Topic(key="a", url="")
    with pytest.raises(ValidationError, match="http"):
        Topic(key="a", url="your_topic_url")


def test_topic_changed_token_is_a_different_topic():
    a = Topic(key="a", url="https://ntfy.test/a", token="one")
    b = Topic(key="a", url="https://ntfy.test/a", token="two")
    assert a != b


def test_topic_repr_masks_token():
    topic = Topic(key="a", url="https://ntfy.test/a", token="secret")
    assert "secret" not in repr(topic)


# ── ConfigSnapshot ────────────────────────────────────────────────────────────

def test_snapshot_from_dict():
    snapshot = ConfigSnapshot.from_dict(
        {
            "topics": {
                "alerts": {"url": "https://ntfy.test/alerts", "token": "tk"},
                "builds": {"url": "https://ntfy.test/builds"},
            }
        }
    )
    assert snapshot.keys == {"alerts", "builds"}
    assert snapshot.topics["alerts"].token == "tk"
    assert snapshot.topics["builds"].token == ""
    assert len(snapshot) == 2
    assert {t.key for t in snapshot} == {"alerts", "builds"}


@pytest.mark.parametrize("data", [None, {}, {"topics": None}, {"topics": {}}])
def test_snapshot_empty_documents(data):
    assert len(ConfigSnapshot.from_dict(data)) == 0


def test_snapshot_rejects_malformed_entries():
    with pytest.raises(ValidationError):
        ConfigSnapshot.from_dict({"topics": ["a", "b"]})
    with pytest.raises(ValidationError):
        ConfigSnapshot.from_dict({"topics": {"a": "https://ntfy.test/a"}})
    with pytest.raises(ValidationError):
        ConfigSnapshot.from_dict({"topics": {"a": {"url": 42}}})


def test_snapshot_is_immutable():
    snapshot = ConfigSnapshot.from_dict({"topics": {"a": {"url": "https://ntfy.test/a"}}})
    with pytest.raises(TypeError):
        snapshot.topics["b"] = Topic(key="b", url="https://ntfy.test/b")


def test_snapshot_key_mismatch_rejected():
    with pytest.raises(ValidationError, match="does not match"):
        ConfigSnapshot(topics={"a": Topic(key="b", url="https://ntfy.test/b")})


# ── Event ─────────────────────────────────────────────────────────────────────

def test_event_from_dict_known_fields():
    event = Event.from_dict(
        {
            "id": "abc",
            "event": "message",
            "topic": "alerts",
            "title": "Disk full",
            "message": "/var is at 99%",
            "tags": ["warning", "ssh-login"],
            "priority": 4,
            "click": "https://example.com",
            "attachment": {"url": "https://example.com/a.png", "name": "a.png"},
            "expires": 12345,
        }
    )
    assert event.is_message
    assert event.title == "Disk full"
    assert event.tags == ("warning", "ssh-login")
    assert event.priority == 4
    assert event.attachment_url == "https://example.com/a.png"
    assert event.raw["expires"] == 12345


def test_event_raw_is_read_only():
    event = Event.from_dict({"event": "message", "extra": 1})
    with pytest.raises(TypeError):
        event.raw["extra"] = 2


def test_event_is_lenient_about_types():
    event = Event.from_dict(
        {
            "event": "message",
            "title": 5,
            "tags": ["ok", 3, None],
            "priority": "high",
            "attachment": "not-a-mapping",
        }
    )
    assert event.title is None
    assert event.tags == ("ok",)
    assert event.priority is None
    assert event.attachment_url is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (1, 1), (5, 5), (4.0, 4), (0, None), (6, None), (2.5, None), (True, None),
        (float("inf"), None), (float("-inf"), None), (float("nan"), None),
    ],
)
def test_event_priority_domain(value, expected):
    assert Event.from_dict({"priority": value}).priority == expected


def test_non_message_events():
    assert not Event.from_dict({"event": "open"}).is_message
    assert not Event.from_dict({"event": "keepalive"}).is_message
    assert not Event.from_dict({}).is_message


# ── decode_event ──────────────────────────────────────────────────────────────

def test_decode_event_from_bytes_and_str():
    assert decode_event(b'{"event":"open"}').kind == "open"
    assert decode_event('{"event":"message","title":"T"}').title == "T"


@pytest.mark.parametrize("line", ["not json", "{broken", "[1, 2]", '"string"', "42"])
def test_decode_event_rejects_non_objects(line):
    with pytest.raises(DecodeError):
        decode_event(line)


def test_decode_event_rejects_invalid_utf8():
    with pytest.raises(DecodeError, match="UTF-8"):
        decode_event(b"\xff\xfe{}")


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_decode_event_non_finite_priority_is_dropped(literal):
    event = decode_event('{"event":"message","title":"T","priority":%s}' % literal)
    assert event.title == "T"
    assert event.priority is None


def test_decode_event_rejects_deeply_nested_line():
    with pytest.raises(DecodeError):
        decode_event('{"event":"message","x":' + "[" * 100000 + "]" * 100000 + "}")
