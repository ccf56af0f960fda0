"""Tests for rapport_scan.normalizers."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from rapport_schema import IntegrationType
from rapport_scan.errors import NormalizationError
from rapport_scan.models import ChatMessage, MailMessage
from rapport_scan.normalizers import (
    chat_external_id,
    normalize,
    normalize_chat_message,
    normalize_mail_message,
    parse_chat_ts,
    parse_internal_date,
    supported_types,
)
from tests.conftest import NOW, mail_message_payload


def _chat(**overrides) -> ChatMessage:
    defaults = dict(
        ts="1717243200.000100",
        channel="C1",
        user="U1",
        text="Renewal is on track",
        sender_name="Dana Client",
    )
    defaults.update(overrides)
    return ChatMessage(**defaults)


class TestChatNormalizer:
    def test_basic_fields(self):
        c = normalize_chat_message(_chat(thread_ts="1717243100.000001"))
        assert c is not None
        assert c.content == "Renewal is on track"
        assert c.sender_name == "Dana Client"
        assert c.sender_email is None
        assert c.integration_type is IntegrationType.CHAT
        assert c.external_id == "C1-1717243200.000100"
        assert c.thread_id == "1717243100.000001"
        assert c.timestamp == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_dropped(self, text):
        assert normalize_chat_message(_chat(text=text)) is None

    def test_fallback_sender_name(self):
        assert normalize_chat_message(_chat(sender_name=None)).sender_name == "User U1"
        assert normalize_chat_message(_chat(sender_name=None, user=None)).sender_name == "Unknown"

    def test_external_id_stable(self):
        assert chat_external_id("C9", "1.000002") == "C9-1.000002"
        first = normalize_chat_message(_chat())
        second = normalize_chat_message(_chat(text="edited"))
        assert first.external_id == second.external_id

    def test_ts_truncated_to_millisecond(self):
        parsed = parse_chat_ts("1717243200.123999")
        assert parsed.microsecond == 123000

    def test_invalid_ts(self):
        with pytest.raises(NormalizationError, match="invalid chat timestamp"):
            parse_chat_ts("yesterday")

    @pytest.mark.parametrize("ts", ["Infinity", "-Infinity", "NaN", "1e30"])
    def test_out_of_range_ts(self, ts):
        with pytest.raises(NormalizationError, match="invalid chat timestamp"):
            parse_chat_ts(ts)


class TestMailNormalizer:
    def test_basic_fields(self):
        msg = MailMessage.model_validate(mail_message_payload("m42", thread_id="t9"))
        c = normalize_mail_message(msg)
        assert c is not None
        assert c.content == "Thanks for the demo, we'd like a quote."
        assert c.sender_name == "Dana <dana@client.test>"
        assert c.sender_email == "Dana <dana@client.test>"
        assert c.integration_type is IntegrationType.MAIL
        assert c.external_id == "m42"
        assert c.thread_id == "t9"

    def test_missing_from_header(self):
        msg = MailMessage.model_validate(mail_message_payload(sender=None))
        c = normalize_mail_message(msg)
        assert c.sender_name == "Unknown"
        assert c.sender_email is None

    def test_empty_body_dropped(self):
        msg = MailMessage.model_validate(mail_message_payload(body="  "))
        assert normalize_mail_message(msg) is None

    def test_internal_date(self):
        assert parse_internal_date(str(int(NOW.timestamp() * 1000))) == NOW

    def test_invalid_internal_date(self):
        with pytest.raises(NormalizationError):
            parse_internal_date("not-a-number")

    def test_out_of_range_internal_date(self):
        with pytest.raises(NormalizationError, match="invalid mail internalDate"):
            parse_internal_date("99999999999999999999")


class TestNormalizeDispatch:
    def test_dispatches_by_type(self):
        c = normalize(_chat(), IntegrationType.CHAT)
        assert c.integration_type is IntegrationType.CHAT

        msg = MailMessage.model_validate(mail_message_payload())
        assert normalize(msg, IntegrationType.MAIL).integration_type is IntegrationType.MAIL

    def test_record_type_mismatch(self):
        with pytest.raises(NormalizationError, match="mail normalizer got ChatMessage"):
            normalize(_chat(), IntegrationType.MAIL)

    def test_bad_timestamp_becomes_normalization_error(self):
        with pytest.raises(NormalizationError):
            normalize(_chat(ts="garbage"), IntegrationType.CHAT)

    def test_overflowing_timestamp_becomes_normalization_error(self):
        with pytest.raises(NormalizationError):
            normalize(_chat(ts="Infinity"), IntegrationType.CHAT)

    def test_supported_types(self):
        assert sorted(supported_types()) == ["chat", "mail"]
