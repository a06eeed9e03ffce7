"""
Decode Cascade Tests
====================

Run:
    python -m unittest event_feed.tests.test_decoding
"""

import json
import unittest

from event_feed.decoding import decode_events
from event_feed.models import ExtractionStage


class TestStageOne(unittest.TestCase):
    """Whole-response decode."""

    def test_valid_array(self):
        events = [
            {"title": "Club Fair", "date": "2026-10-20", "time": "12:00 PM"},
            {"title": "Career Expo", "date": "2026-10-21", "time": "10:00 AM"},
        ]
        objects, stage = decode_events(json.dumps(events))
        self.assertEqual(stage, ExtractionStage.LLM_DIRECT)
        self.assertEqual(objects, events)

    def test_fenced_array(self):
        objects, stage = decode_events('```json\n[{"title": "A"}]\n```')
        self.assertEqual(stage, ExtractionStage.LLM_DIRECT)
        self.assertEqual(objects, [{"title": "A"}])

    def test_single_object_wrapped(self):
        objects, stage = decode_events('{"title": "Solo"}')
        self.assertEqual(stage, ExtractionStage.LLM_DIRECT)
        self.assertEqual(objects, [{"title": "Solo"}])

    def test_untitled_items_dropped(self):
        objects, stage = decode_events('[{"title": ""}, {"date": "2026-10-20"}, {"title": "Kept"}]')
        self.assertEqual(objects, [{"title": "Kept"}])
        self.assertEqual(stage, ExtractionStage.LLM_DIRECT)


class TestStageTwo(unittest.TestCase):
    """Array located inside surrounding text."""

    def test_chatter_and_fence(self):
        text = "Here is the data:\n```json\n[{\"title\":\"Club Fair\"}]\n```"
        objects, stage = decode_events(text)
        self.assertEqual(stage, ExtractionStage.LLM_REGEX_ARRAY)
        self.assertEqual(objects, [{"title": "Club Fair"}])

    def test_trailing_note(self):
        text = '[{"title": "A"}, {"title": "B"}]\nLet me know if you need more.'
        objects, stage = decode_events(text)
        self.assertEqual(stage, ExtractionStage.LLM_REGEX_ARRAY)
        self.assertEqual([o["title"] for o in objects], ["A", "B"])


class TestStageThree(unittest.TestCase):
    """Per-object repair."""

    def test_malformed_array(self):
        text = '[{title: "A", date: "2026-10-20",}, {"title": "B", "time": "7:00 PM",}]'
        objects, stage = decode_events(text)
        self.assertEqual(stage, ExtractionStage.LLM_OBJECT_REPAIR)
        self.assertEqual([o["title"] for o in objects], ["A", "B"])
        self.assertEqual(objects[1]["time"], "7:00 PM")

    def test_truncated_response_keeps_complete_objects(self):
        text = '[{"title": "A", "date": "2026-10-20"}, {"title": "B", "date": "2026-'
        objects, stage = decode_events(text)
        self.assertEqual(stage, ExtractionStage.LLM_OBJECT_REPAIR)
        self.assertEqual(objects, [{"title": "A", "date": "2026-10-20"}])

    def test_nested_title_stays_inside_its_event(self):
        text = '[{"title": "Trivia Night", "organizer": {"title": "Quiz Club",},}]'
        objects, stage = decode_events(text)
        self.assertEqual(stage, ExtractionStage.LLM_OBJECT_REPAIR)
        self.assertEqual(objects, [{"title": "Trivia Night", "organizer": {"title": "Quiz Club"}}])

    def test_objects_without_title_skipped(self):
        text = 'first {"title": "", "date": "x",} then {"title": "Real",}'
        objects, stage = decode_events(text)
        self.assertEqual(objects, [{"title": "Real"}])


class TestNothingDecodes(unittest.TestCase):

    def test_prose(self):
        self.assertEqual(decode_events("I could not find any events."), ([], None))

    def test_empty(self):
        self.assertEqual(decode_events(""), ([], None))

    def test_empty_array(self):
        self.assertEqual(decode_events("[]"), ([], None))

    def test_deeply_nested_brackets(self):
        self.assertEqual(decode_events("[" * 100000), ([], None))

    def test_deeply_nested_array_after_chatter(self):
        text = 'Events: [{"title": ' + "[" * 100000 + "]" * 100000 + "}]"
        self.assertEqual(decode_events(text), ([], None))


if __name__ == '__main__':
    unittest.main()
