"""
Tests for ntfy_toaster.main
"""
import json

import pytest

from ntfy_toaster.config_store import ConfigStore
from ntfy_toaster.main import apply_config_change, main
from ntfy_toaster.supervisor import SubscriptionSupervisor

URL_A = "https://ntfy.test/a"
URL_B = "https://ntfy.test/b"


def _write(path, **topics):
    payload = {"topics": {key: {"url": url} for key, url in topics.items()}}
    path.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
async def running(tmp_path, make_session, make_response, renderer, fake_sleep):
    """A supervisor already reconciled against a one-topic config file."""
    path = tmp_path / "config.json"
    _write(path, a=URL_A)

    session = make_session(
        {f"{URL_A}/json": [make_response()], f"{URL_B}/json": [make_response()]}
    )
    store = ConfigStore(str(path))
    supervisor = SubscriptionSupervisor(session, renderer, sleep=fake_sleep)
    await supervisor.reconcile(store.load())

    yield path, store, supervisor

    await supervisor.shutdown(timeout=1.0)


# ── Startup ───────────────────────────────────────────────────────────────────

async def test_unreadable_config_exits_with_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{ not json", encoding="utf-8")

    assert await main(str(path)) == 1


async def test_invalid_topic_exits_with_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"topics": {"a": {"url": "your_topic_url"}}}', encoding="utf-8")

    assert await main(str(path)) == 1


# ── Config changes ────────────────────────────────────────────────────────────

async def test_valid_edit_reconciles_to_new_topics(running):
    path, store, supervisor = running
    _write(path, b=URL_B)

    assert await apply_config_change(store, supervisor) is True

    assert supervisor.topics == {"b"}
    assert store.current.keys == {"b"}
    assert supervisor.get_stats()["reconciliations"] == 2


async def test_invalid_edit_keeps_running_subscriptions(running):
    path, store, supervisor = running
    previous = store.current
    handle = supervisor.handle("a")
    path.write_text("{ not json", encoding="utf-8")

    assert await apply_config_change(store, supervisor) is False

    assert store.current is previous
    assert supervisor.topics == {"a"}
    assert supervisor.handle("a") is handle
    assert not handle.subscription.cancelled
    assert supervisor.get_stats()["reconciliations"] == 1
