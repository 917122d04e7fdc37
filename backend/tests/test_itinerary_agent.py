"""
Unit tests for agents/itinerary_agent.py

Tests cover:
- Day-count validation with escalating retries
- Token budget growth on truncated answers
- Closest-candidate repair (trim / tolerance / mismatch error)
- API failures
- Parsing of wrapped or partial model answers
- Filling all three option slots
"""
import json
import pytest
from openai import OpenAIError
from unittest.mock import MagicMock

from travel_crm.agents.itinerary_agent import ItineraryAgent
from travel_crm.core.errors import DayCountMismatchError, GenerationError
from travel_crm.core.llm import LLMResult

from conftest import SAMPLE_REQUEST, FakeLLM, make_option, ok


def _agent(llm, photos):
    return ItineraryAgent(llm=llm, photos=photos, sleep=MagicMock())


# ---------------------------------------------------------------------------
# Day count + retries
# ---------------------------------------------------------------------------

class TestGenerateOption:
    def test_exact_day_count_first_try(self, photos):
        llm = FakeLLM([ok(5)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert option["title"] == "Tea Trails & Leopards"
        assert [d["day"] for d in option["days"]] == [1, 2, 3, 4, 5]
        assert len(llm.calls) == 1
        assert llm.calls[0]["temperature"] == pytest.approx(0.9)
        assert llm.calls[0]["max_tokens"] == 6000

    def test_wrong_count_retries_with_correction(self, photos):
        llm = FakeLLM([ok(7), ok(5)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert len(option["days"]) == 5
        assert "CORRECTION:" not in llm.calls[0]["user"]
        assert "CORRECTION:" in llm.calls[1]["user"]
        assert "contained 7 days" in llm.calls[1]["user"]
        assert llm.calls[1]["temperature"] == pytest.approx(0.7)

    def test_third_attempt_gets_final_warning(self, photos):
        llm = FakeLLM([ok(7), ok(6), ok(5)])
        _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert "FINAL WARNING:" in llm.calls[2]["user"]
        assert "1, 2, 3, 4, 5" in llm.calls[2]["user"]
        assert llm.calls[2]["temperature"] == pytest.approx(0.5)

    def test_truncated_answer_gets_more_tokens(self, photos):
        truncated = LLMResult(content='{"title": "Tea', finish_reason="length")
        llm = FakeLLM([truncated, truncated, ok(5)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert len(option["days"]) == 5
        assert [c["max_tokens"] for c in llm.calls] == [6000, 9000, 10000]
        # a cut-off answer is not a content mistake
        assert "CORRECTION:" not in llm.calls[1]["user"]

    def test_unparsable_answer_escalates(self, photos):
        llm = FakeLLM([LLMResult(content="Sorry, I cannot help", finish_reason="stop"), ok(5)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert len(option["days"]) == 5
        assert "could not be parsed" in llm.calls[1]["user"]

    def test_api_error_is_retried(self, photos):
        llm = FakeLLM([OpenAIError("upstream timeout"), ok(5)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert len(option["days"]) == 5
        assert len(llm.calls) == 2

    def test_api_down_on_every_attempt(self, photos):
        llm = FakeLLM([OpenAIError("down")] * 3)
        with pytest.raises(GenerationError, match="after multiple attempts"):
            _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

    def test_unknown_trip_length_accepts_any_count(self, photos):
        request = {**SAMPLE_REQUEST, "start_date": None, "end_date": None}
        llm = FakeLLM([ok(9)])
        option = _agent(llm, photos).generate_option(request, 0)
        assert len(option["days"]) == 9

    def test_stored_duration_sets_expected_days(self, photos):
        request = {**SAMPLE_REQUEST, "duration": 3}
        llm = FakeLLM([ok(3)])
        option = _agent(llm, photos).generate_option(request, 0)
        assert len(option["days"]) == 3
        assert "EXACTLY 3 days" in llm.calls[0]["user"]

    def test_titles_of_other_slots_are_avoided(self, photos):
        request = {
            **SAMPLE_REQUEST,
            "itinerary_options": {"options": [make_option(5, "Coastal Escape"), None, make_option(5, "Hill Country")]},
        }
        llm = FakeLLM([ok(5)])
        _agent(llm, photos).generate_option(request, 1)
        assert "Already generated options: Coastal Escape, Hill Country" in llm.calls[0]["user"]


# ---------------------------------------------------------------------------
# Repair after the last attempt
# ---------------------------------------------------------------------------

class TestRepairDayCount:
    def test_closest_long_answer_is_trimmed(self, photos):
        llm = FakeLLM([ok(8), ok(7), ok(6)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert [d["day"] for d in option["days"]] == [1, 2, 3, 4, 5]

    def test_one_day_short_is_accepted(self, photos):
        llm = FakeLLM([ok(4), ok(4), ok(4)])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)
        assert len(option["days"]) == 4

    def test_far_too_short_raises(self, photos):
        llm = FakeLLM([ok(2), ok(2), ok(2)])
        with pytest.raises(DayCountMismatchError) as exc:
            _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)

        assert exc.value.expected == 5
        assert exc.value.actual == 2
        assert str(exc.value) == "Invalid option format: expected 5 days but got 2 days"

    def test_prefers_closest_candidate(self, photos):
        llm = FakeLLM([ok(2, "Far off"), ok(4, "Close"), ok(9, "Way over")])
        option = _agent(llm, photos).generate_option(SAMPLE_REQUEST, 0)
        assert option["title"] == "Close"


# ---------------------------------------------------------------------------
# parse_option
# ---------------------------------------------------------------------------

class TestParseOption:
    def test_unwraps_single_option(self, photos):
        agent = _agent(FakeLLM(), photos)
        option = agent.parse_option(json.dumps({"option": make_option(2)}))
        assert len(option["days"]) == 2

    def test_unwraps_options_list(self, photos):
        agent = _agent(FakeLLM(), photos)
        option = agent.parse_option(json.dumps({"options": [make_option(3, "First")]}))
        assert option["title"] == "First"

    def test_missing_summary_rejected(self, photos):
        data = make_option(2)
        del data["summary"]
        with pytest.raises(ValueError, match="missing required fields"):
            _agent(FakeLLM(), photos).parse_option(json.dumps(data))

    def test_days_renumbered_in_order(self, photos):
        data = make_option(3)
        for day, number in zip(data["days"], (4, 4, 9)):
            day["day"] = number
        option = _agent(FakeLLM(), photos).parse_option(json.dumps(data))
        assert [d["day"] for d in option["days"]] == [1, 2, 3]

    def test_missing_image_falls_back_to_location_photo(self, photos):
        option = _agent(FakeLLM(), photos).parse_option(json.dumps(make_option(3, with_images=False)))
        assert option["days"][0]["image"] == "/images/arrivalincolombo.jpg"
        assert option["days"][2]["image"] == "/images/kandy.jpg"

    def test_unknown_location_gets_placeholder(self, photos):
        data = make_option(1, with_images=False)
        data["days"][0]["location"] = "Jaffna"
        option = _agent(FakeLLM(), photos).parse_option(json.dumps(data))
        assert option["days"][0]["image"] == "/images/placeholder.jpg"

    def test_string_activities_become_lists(self, photos):
        data = make_option(1)
        data["days"][0]["activities"] = "09:00 - Sunrise hike"
        data["days"][0]["optional_activities"] = None
        option = _agent(FakeLLM(), photos).parse_option(json.dumps(data))
        assert option["days"][0]["activities"] == ["09:00 - Sunrise hike"]
        assert option["days"][0]["optional_activities"] == []

    def test_truncated_answer_keeps_complete_days(self, photos):
        content = json.dumps(make_option(3))
        cut = content[: content.rfind('{"day": 3')]
        option = _agent(FakeLLM(), photos).parse_option(cut)
        assert len(option["days"]) == 2


# ---------------------------------------------------------------------------
# generate_all
# ---------------------------------------------------------------------------

def test_generate_all_fills_three_distinct_slots(photos):
    llm = FakeLLM([ok(5, "Culture"), ok(5, "Wildlife"), ok(5, "Beaches")])
    saved = []

    options = _agent(llm, photos).generate_all(SAMPLE_REQUEST, on_option=lambda i, o: saved.append((i, o["title"])))

    assert [o["title"] for o in options] == ["Culture", "Wildlife", "Beaches"]
    assert saved == [(0, "Culture"), (1, "Wildlife"), (2, "Beaches")]
    assert "Already generated options" not in llm.calls[0]["user"]
    assert "Already generated options: Culture, Wildlife" in llm.calls[2]["user"]
