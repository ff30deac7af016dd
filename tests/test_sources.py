"""Tests for loading parsed messages from JSON."""

import json

import pytest

from groupdigest.sources import (
    DateInfo,
    DateStats,
    date_info,
    date_stats,
    load_messages,
    message_from_dict,
    parse_time,
    recent_dates,
)
from groupdigest.summarization.models import SYSTEM_SENDER, Message


class TestParseTime:
    @pytest.mark.parametrize("value,expected", [("00:00", 0), ("09:05", 545), ("23:59", 1439), ("14:03:59", 843)])
    def test_valid(self, value, expected):
        assert parse_time(value) == expected

    @pytest.mark.parametrize("value", ["", "25:00", "12:60", "noon"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_time(value)


class TestMessageFromDict:
    def test_full_record(self):
        record = {"date": "2024-05-01", "time": "14:03", "sender": "Ana", "content": "hi", "isMedia": False}
        assert message_from_dict(record) == Message(843, "Ana", "hi", False, "2024-05-01")

    def test_missing_sender_is_system(self):
        m = message_from_dict({"time": "08:00", "content": "Ana joined"})
        assert m.sender == SYSTEM_SENDER
        assert m.is_system


class TestLoadMessages:
    def test_list_payload(self, temp_dir):
        path = temp_dir / "chat.json"
        path.write_text(json.dumps([
            {"time": "10:00", "sender": "Ana", "content": "a", "date": "2024-01-01"},
            {"time": "10:01", "sender": "Bo", "content": "b", "date": "2024-01-02"},
        ]))

        assert [m.text for m in load_messages(path)] == ["a", "b"]
        assert [m.text for m in load_messages(path, dates="2024-01-02")] == ["b"]

    def test_messages_by_date_payload(self, temp_dir):
        path = temp_dir / "chat.json"
        path.write_text(json.dumps({
            "messagesByDate": {
                "2024-01-02": [{"time": "09:00", "sender": "Bo", "content": "later"}],
                "2024-01-01": [{"time": "23:00", "sender": "Ana", "content": "earlier"}],
            }
        }))

        all_days = load_messages(path)
        assert [(m.date, m.text) for m in all_days] == [("2024-01-01", "earlier"), ("2024-01-02", "later")]
        assert [m.text for m in load_messages(path, dates="2024-01-02")] == ["later"]

    def test_messages_key_payload(self, temp_dir):
        path = temp_dir / "chat.json"
        path.write_text(json.dumps({"messages": [{"time": "07:30", "sender": "Ana", "content": "<Media omitted>", "isMedia": True}]}))

        (message,) = load_messages(path)
        assert message.is_media
        assert message.time == "07:30"

    def test_several_days(self, temp_dir):
        path = temp_dir / "chat.json"
        path.write_text(json.dumps({
            "messagesByDate": {
                "2024-01-03": [{"time": "08:00", "sender": "Cy", "content": "third"}],
                "2024-01-02": [{"time": "09:00", "sender": "Bo", "content": "second"}],
                "2024-01-01": [{"time": "23:00", "sender": "Ana", "content": "first"}],
            }
        }))

        picked = load_messages(path, dates=["2024-01-03", "2024-01-01"])
        assert [m.text for m in picked] == ["first", "third"]


class TestDateInfo:
    @pytest.fixture
    def messages(self):
        return [
            Message(600, SYSTEM_SENDER, "Ana created the group", date="2024-02-01"),
            Message(601, "Ana", "photo", is_media=True, date="2024-02-01"),
            Message(602, "Bo", "x" * 60, date="2024-02-01"),
            Message(603, "Ana", "short", date="2024-02-01"),
            Message(540, "Cy", "good morning", date="2024-02-03"),
            Message(545, "Cy", "anyone?", date="2024-02-03"),
            Message(700, "Bo", "hi", date="2024-02-02"),
            Message(701, "Bo", "no date"),
        ]

    def test_per_day_details_newest_first(self, messages):
        infos = date_info(messages)

        assert [i.date for i in infos] == ["2024-02-03", "2024-02-02", "2024-02-01"]
        assert infos[0] == DateInfo("2024-02-03", 2, 1, "good morning")
        assert infos[2] == DateInfo("2024-02-01", 4, 2, "x" * 50 + "...")

    def test_recent_defaults_to_three(self, messages):
        infos = date_info(messages * 2)
        assert len(recent_dates(infos)) == 3
        assert [i.date for i in recent_dates(infos, 1)] == ["2024-02-03"]

    def test_stats(self, messages):
        stats = date_stats(date_info(messages))
        assert stats == DateStats(total_days=3, oldest_date="2024-02-01", newest_date="2024-02-03", total_messages=7)

    def test_stats_empty(self):
        assert date_stats([]) == DateStats(0, "", "", 0)
