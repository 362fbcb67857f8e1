"""Tests for ConversationLedger - delayed, one-sided visibility."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from core.config import PenpalsConfig
from core.events import MessageSent
from core.exceptions import ContentTooShortError, NotMatchedError
from core.services.conversation_service import ConversationLedger
from factories import ALICE, BOB, CAROL, make_message, seed
from utils.timezone import now_utc

LETTER = "Dear Bob, the fog rolled in early today."


@pytest.fixture
def ledger(config, store, event_bus):
    return ConversationLedger(config, store, event_bus)


@pytest.fixture
def published(event_bus):
    events = []
    event_bus.subscribe("MessageSent", events.append)
    return events


def at(moment):
    """Freeze the ledger's clock."""
    return patch("core.services.conversation_service.now_utc", return_value=moment)


class TestSend:

    def test_appends_message_to_partner(self, ledger, matched_pair, published):
        message = ledger.send(ALICE, LETTER)

        assert message.sender == ALICE
        assert message.recipient == BOB
        assert message.content == LETTER
        assert message.notified_at is None
        assert message.deliver_at - message.created_at == timedelta(hours=12)
        assert matched_pair.snapshot().messages == [message]

    def test_publishes_message_sent(self, ledger, matched_pair, published):
        message = ledger.send(ALICE, LETTER)

        assert len(published) == 1
        assert isinstance(published[0], MessageSent)
        assert published[0].message == message

    def test_content_is_not_trimmed(self, ledger, matched_pair):
        message = ledger.send(ALICE, "  spaced out letter  ")
        assert message.content == "  spaced out letter  "

    def test_short_content_rejected(self, ledger, matched_pair, published):
        with pytest.raises(ContentTooShortError, match="Message must be at least 10 characters"):
            ledger.send(ALICE, "too short")

        assert matched_pair.snapshot().messages == []
        assert published == []

    def test_exactly_minimum_length_accepted(self, ledger, matched_pair):
        ledger.send(ALICE, "x" * 10)

    def test_unmatched_sender_rejected(self, ledger, matched_pair):
        with pytest.raises(NotMatchedError):
            ledger.send(CAROL, LETTER)

    def test_unknown_sender_rejected(self, ledger, matched_pair):
        with pytest.raises(NotMatchedError):
            ledger.send("ghost@ucsc.edu", LETTER)

    def test_sender_email_normalized(self, ledger, matched_pair):
        assert ledger.send(ALICE.upper(), LETTER).sender == ALICE


class TestView:

    def test_recipient_sees_redacted_until_delivery(self, ledger, matched_pair):
        message = ledger.send(ALICE, LETTER)

        with at(message.created_at + timedelta(hours=11)):
            before = ledger.view(BOB)
        with at(message.deliver_at):
            after = ledger.view(BOB)

        assert before[0].content is None
        assert before[0].delivered is False
        assert before[0].deliver_at == message.deliver_at
        assert after[0].content == LETTER
        assert after[0].delivered is True

    def test_sender_always_sees_own_message(self, ledger, matched_pair):
        ledger.send(ALICE, LETTER)
        assert ledger.view(ALICE)[0].content == LETTER

    def test_oldest_first(self, ledger, matched_pair):
        start = now_utc()
        first = make_message(ALICE, BOB, created_at=start - timedelta(days=2))
        second = make_message(BOB, ALICE, created_at=start - timedelta(days=1))
        seed(matched_pair, messages=[second, first])

        assert [v.id for v in ledger.view(ALICE)] == [first.id, second.id]

    def test_excludes_previous_partners(self, ledger, matched_pair):
        seed(matched_pair, messages=[make_message(CAROL, ALICE)])
        ledger.send(ALICE, LETTER)

        assert [v.sender for v in ledger.view(ALICE)] == [ALICE]

    def test_unmatched_user_gets_empty_list(self, ledger, matched_pair):
        assert ledger.view(CAROL) == []

    def test_unknown_user_gets_empty_list(self, ledger):
        assert ledger.view("ghost@ucsc.edu") == []


class TestConversationBetween:

    def test_just_sent_message_unredacted(self, ledger, matched_pair):
        ledger.send(ALICE, LETTER)

        messages = ledger.conversation_between(BOB, ALICE)

        assert [m.content for m in messages] == [LETTER]

    def test_works_after_pair_ended(self, ledger, store):
        seed(store, messages=[make_message(ALICE, BOB)])
        assert len(ledger.conversation_between(ALICE, BOB)) == 1


class TestOneMinuteDelayScenario:
    """A full letter exchange with a one-minute delivery delay."""

    def test_redacted_then_delivered(self, store, event_bus, matched_pair):
        ledger = ConversationLedger(PenpalsConfig(delivery_delay_minutes=1), store, event_bus)
        message = ledger.send(ALICE, LETTER)

        with at(message.created_at + timedelta(seconds=30)):
            assert ledger.view(BOB)[0].content is None
        with at(message.created_at + timedelta(seconds=61)):
            assert ledger.view(BOB)[0].content == LETTER
