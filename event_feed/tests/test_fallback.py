"""
Direct Extraction Fallback Tests
================================

Run:
    python -m unittest event_feed.tests.test_fallback
"""

import unittest
from datetime import date

from event_feed.batching import batch_fragments, join_fragments
from event_feed.fallback import extract_direct, extract_fragment, parse_date_text, split_date_time
from event_feed.models import UNTITLED_EVENT

from .fakes import card

TODAY = date(2026, 10, 19)


class TestExtractFragment(unittest.TestCase):

    def test_all_fields(self):
        record = extract_fragment(card("Spring Concert"), default_location="College Park, Maryland", today=TODAY)

        self.assertEqual(record.title, "Spring Concert")
        self.assertEqual(record.date, "2026-10-20")
        self.assertEqual(record.time, "7:00PM EDT")
        self.assertEqual(record.location, "Stamp Student Union")
        self.assertEqual(record.organizer_name, "Student Government Association")
        self.assertEqual(record.image_url, "https://cdn.example.edu/images/event.png")
        self.assertEqual(record.description, "")
        self.assertEqual(record.category, "")

    def test_missing_title_gets_placeholder(self):
        record = extract_fragment(card(None), today=TODAY)
        self.assertEqual(record.title, UNTITLED_EVENT)

    def test_missing_location_uses_default(self):
        fragment = '<div><h3>Quiet Study</h3></div>'
        record = extract_fragment(fragment, default_location="College Park, Maryland", today=TODAY)
        self.assertEqual(record.location, "College Park, Maryland")
        self.assertEqual(record.date, "")
        self.assertEqual(record.time, "")
        self.assertEqual(record.organizer_name, "")
        self.assertEqual(record.image_url, "")

    def test_entities_unescaped(self):
        record = extract_fragment('<h3>Arts &amp; Crafts</h3>', today=TODAY)
        self.assertEqual(record.title, "Arts & Crafts")

    def test_plain_quoted_background_image(self):
        fragment = '<h3>X</h3><div style=\'background-image: url("https://img.test/a.jpg")\'></div>'
        self.assertEqual(extract_fragment(fragment, today=TODAY).image_url, "https://img.test/a.jpg")

    def test_date_div_fallback(self):
        fragment = '<h3>X</h3><div class="event-date">Wednesday, October 21, 2026 at 5:00PM</div>'
        record = extract_fragment(fragment, today=TODAY)
        self.assertEqual((record.date, record.time), ("2026-10-21", "5:00PM"))


class TestDates(unittest.TestCase):

    def test_yearless_date_uses_today_year(self):
        self.assertEqual(parse_date_text("Tuesday, October 20", TODAY), "2026-10-20")

    def test_yearless_january_date_read_in_december_rolls_over(self):
        self.assertEqual(split_date_time("Friday, January 1 at 7:00PM EST", date(2026, 12, 31)),
                         ("2027-01-01", "7:00PM EST"))

    def test_explicit_year_never_rolls_over(self):
        self.assertEqual(parse_date_text("January 1, 2026", date(2026, 12, 31)), "2026-01-01")

    def test_recent_yearless_date_kept_in_current_year(self):
        self.assertEqual(parse_date_text("October 17", TODAY), "2026-10-17")

    def test_unparseable_left_raw(self):
        self.assertEqual(parse_date_text("Ongoing", TODAY), "Ongoing")

    def test_split_without_time(self):
        self.assertEqual(split_date_time("October 22, 2026", TODAY), ("2026-10-22", ""))


class TestExtractDirect(unittest.TestCase):

    def test_one_record_per_fragment(self):
        fragments = [card("A"), card(None), card("C")]
        records = extract_direct(join_fragments(fragments), today=TODAY)
        self.assertEqual([r.title for r in records], ["A", UNTITLED_EVENT, "C"])

    def test_accepts_batch_and_list(self):
        fragments = [card("A"), card("B")]
        batch = batch_fragments(fragments, 3)[0]
        self.assertEqual(extract_direct(batch, today=TODAY), extract_direct(fragments, today=TODAY))

    def test_no_separator_single_fragment(self):
        self.assertEqual(len(extract_direct(card("Only"), today=TODAY)), 1)

    def test_blank_fragments_skipped(self):
        self.assertEqual(extract_direct(["", "   ", card("A")], today=TODAY)[0].title, "A")
        self.assertEqual(len(extract_direct(["", "   ", card("A")], today=TODAY)), 1)

    def test_idempotent(self):
        fragments = [card("A"), card("B", location="Hornbake Plaza"), '<div>nothing</div>']
        self.assertEqual(extract_direct(fragments, today=TODAY), extract_direct(fragments, today=TODAY))

    def test_titles_never_empty(self):
        fragments = ['<div></div>', '<h3> </h3>', card("")]
        for record in extract_direct(fragments, today=TODAY):
            self.assertTrue(record.title)


if __name__ == '__main__':
    unittest.main()
