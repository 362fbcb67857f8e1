"""Tests for domain event handlers."""

from unittest.mock import Mock

from core.config import PenpalsConfig
from core.events import IntroSubmitted, MessageSent, UsersMatched
from core.handlers.intro_submitted_handler import handle_intro_submitted
from core.handlers.match_notification_handler import handle_users_matched
from core.handlers.message_sent_handler import handle_message_sent
from core.services.delivery_scheduler import DeliveryScheduler
from factories import ALICE, ALICE_INTRO, BOB, BOB_INTRO, make_message, make_user


class TestUsersMatchedHandler:

    def test_each_side_gets_the_others_intro(self, notifier, config):
        handler = handle_users_matched(notifier, config)

        handler(UsersMatched(
            user_a=make_user(ALICE, ALICE_INTRO, partner=BOB),
            user_b=make_user(BOB, BOB_INTRO, partner=ALICE),
        ))

        sent = {call.args[0]: call.args[1] for call in notifier.send.call_args_list}
        assert set(sent) == {ALICE, BOB}
        assert BOB_INTRO in sent[ALICE].body
        assert ALICE_INTRO in sent[BOB].body

    def test_first_failure_does_not_skip_second(self, notifier, config):
        notifier.send.side_effect = [False, True]
        handler = handle_users_matched(notifier, config)

        handler(UsersMatched(
            user_a=make_user(ALICE, ALICE_INTRO, partner=BOB),
            user_b=make_user(BOB, BOB_INTRO, partner=ALICE),
        ))

        assert notifier.send.call_count == 2


class TestIntroSubmittedHandler:

    def test_notifies_admin(self, notifier, config):
        handle_intro_submitted(notifier, config)(IntroSubmitted(user=make_user(ALICE, ALICE_INTRO)))

        to, template = notifier.send.call_args.args
        assert to == "admin@ucsc.edu"
        assert ALICE in template.body
        assert ALICE_INTRO in template.body

    def test_no_admin_configured(self, notifier):
        handler = handle_intro_submitted(notifier, PenpalsConfig(admin_email=None))
        handler(IntroSubmitted(user=make_user(ALICE, ALICE_INTRO)))
        notifier.send.assert_not_called()


class TestMessageSentHandler:

    def test_arms_delivery(self):
        delivery = Mock(spec=DeliveryScheduler)
        message = make_message(ALICE, BOB)

        handle_message_sent(delivery)(MessageSent(message=message))

        delivery.schedule_one.assert_called_once_with(message)
