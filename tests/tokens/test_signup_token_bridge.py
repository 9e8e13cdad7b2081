from __future__ import annotations

import pytest

from src.rfid_entry.rfid_entry.core.exceptions import StoreUnavailableError
from src.rfid_entry.rfid_entry.tokens.bridge import SignupTokenBridge


@pytest.fixture
def bridge(kv_store):
    return SignupTokenBridge(kv_store, ttl_seconds=600, form_base_url="http://forms.test/")


def test_issue_then_resolve_round_trip(bridge):
    token = bridge.issue_or_reuse("RFID-UNKNOWN-1")

    assert len(token) == 40
    assert bridge.resolve(token) == "RFID-UNKNOWN-1"


def test_second_issue_reuses_token_and_extends_expiry(bridge, kv_store, clock):
    token = bridge.issue_or_reuse("RFID-X")
    clock.advance(minutes=8)

    again = bridge.issue_or_reuse("RFID-X")

    assert again == token
    assert kv_store.ttl(bridge.token_key(token)) == 600
    assert kv_store.ttl(bridge.rfid_key("RFID-X")) == 600

    # 8 more minutes: past the first expiry, still alive thanks to the refresh
    clock.advance(minutes=8)
    assert bridge.resolve(token) == "RFID-X"


def test_token_expires_after_ttl(bridge, clock):
    token = bridge.issue_or_reuse("RFID-X")
    clock.advance(minutes=10)

    assert bridge.resolve(token) is None
    assert bridge.issue_or_reuse("RFID-X") != token


def test_consume_removes_both_directions(bridge, kv_store):
    token = bridge.issue_or_reuse("RFID-X")

    bridge.consume(token, "RFID-X")

    assert bridge.resolve(token) is None
    assert kv_store.get(bridge.rfid_key("RFID-X")) is None


def test_orphaned_reverse_key_gets_a_new_token(bridge, kv_store):
    kv_store.set(bridge.rfid_key("RFID-X"), "a" * 40, 600)

    token = bridge.issue_or_reuse("RFID-X")

    assert token != "a" * 40
    assert bridge.resolve(token) == "RFID-X"
    assert kv_store.get(bridge.rfid_key("RFID-X")) == token


def test_concurrent_claim_shares_the_winner_token(bridge, kv_store, monkeypatch):
    original_set = kv_store.set

    def racing_set(key, value, ttl_seconds, *, only_if_absent=False):
        if only_if_absent and key == bridge.rfid_key("RFID-X"):
            # another request wins the reverse key between our GET and SET NX
            original_set(bridge.token_key("b" * 40), "RFID-X", ttl_seconds)
            original_set(key, "b" * 40, ttl_seconds)
            return False
        return original_set(key, value, ttl_seconds, only_if_absent=only_if_absent)

    monkeypatch.setattr(kv_store, "set", racing_set)

    assert bridge.issue_or_reuse("RFID-X") == "b" * 40


def test_malformed_token_never_hits_store(bridge, kv_store):
    kv_store.available = False

    assert bridge.resolve("not-a-token") is None
    assert bridge.resolve("") is None


def test_store_outage_propagates(bridge, kv_store):
    kv_store.available = False

    with pytest.raises(StoreUnavailableError):
        bridge.issue_or_reuse("RFID-X")


def test_form_url(bridge):
    assert bridge.form_url(None) is None
    assert bridge.form_url("ab12") == "http://forms.test/entry-form?token=ab12"
