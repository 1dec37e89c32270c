import unittest
from datetime import date, datetime, time, timezone

from salon_booking.core.errors import InvalidFormat, InvalidInput
from salon_booking.services.timewindow import (
    BUSINESS_TIMEZONE,
    align_up_to_step,
    combine_date_and_time,
    overlaps,
    parse_local_datetime,
    parse_range_literal,
    shift_minutes,
    to_range_literal,
)

TZ = BUSINESS_TIMEZONE


class TestTimeWindow(unittest.TestCase):
    """Parsing, alinhamento e intervalos."""

    def test_align_rounds_up_to_next_step(self):
        ts = datetime(2030, 6, 3, 10, 7, 30, tzinfo=TZ)
        self.assertEqual(align_up_to_step(ts, 5), datetime(2030, 6, 3, 10, 10, tzinfo=TZ))

    def test_align_keeps_value_already_on_grid(self):
        ts = datetime(2030, 6, 3, 10, 15, 45, tzinfo=TZ)
        self.assertEqual(align_up_to_step(ts, 15), datetime(2030, 6, 3, 10, 15, tzinfo=TZ))

    def test_align_rejects_non_positive_step(self):
        with self.assertRaises(InvalidInput):
            align_up_to_step(datetime(2030, 6, 3, 10, 0, tzinfo=TZ), 0)

    def test_range_literal_round_trip(self):
        start = datetime(2030, 6, 3, 10, 0, tzinfo=TZ)
        end = datetime(2030, 6, 3, 11, 0, tzinfo=TZ)

        literal = to_range_literal(start, end)

        self.assertEqual(literal, "[2030-06-03T08:00:00+00:00,2030-06-03T09:00:00+00:00)")
        self.assertEqual(parse_range_literal(literal, TZ), (start, end))

    def test_range_literal_accepts_quoted_postgres_output(self):
        start, end = parse_range_literal('["2030-06-03 08:00:00+00","2030-06-03 09:00:00+00")', TZ)
        self.assertEqual(start, datetime(2030, 6, 3, 10, 0, tzinfo=TZ))
        self.assertEqual(end, datetime(2030, 6, 3, 11, 0, tzinfo=TZ))

    def test_range_literal_naive_bounds_are_utc(self):
        start, _ = parse_range_literal("[2030-06-03T08:00:00,2030-06-03T09:00:00)", TZ)
        self.assertEqual(start.astimezone(timezone.utc).hour, 8)

    def test_range_literal_rejects_garbage(self):
        for text in ("2030-06-03", "[a,b)", "[2030-06-03T08:00:00)"):
            with self.assertRaises(InvalidFormat):
                parse_range_literal(text, TZ)

    def test_invalid_format_is_invalid_input(self):
        with self.assertRaises(InvalidInput):
            parse_range_literal("nope", TZ)

    def test_parse_local_datetime_without_offset_is_salon_time(self):
        parsed = parse_local_datetime("2030-06-03T10:00", TZ)
        self.assertEqual(parsed, datetime(2030, 6, 3, 10, 0, tzinfo=TZ))

    def test_parse_local_datetime_with_offset_is_converted(self):
        parsed = parse_local_datetime("2030-06-03T08:00:00+00:00", TZ)
        self.assertEqual(parsed.hour, 10)
        self.assertEqual(parsed.tzinfo, TZ)

    def test_parse_local_datetime_rejects_garbage(self):
        with self.assertRaises(InvalidInput):
            parse_local_datetime("tomorrow at ten", TZ)

    def test_combine_date_and_time(self):
        day = date(2030, 6, 3)
        self.assertEqual(combine_date_and_time(day, "09:30", TZ), datetime(2030, 6, 3, 9, 30, tzinfo=TZ))
        self.assertEqual(combine_date_and_time(day, time(18, 0), TZ), datetime(2030, 6, 3, 18, 0, tzinfo=TZ))
        self.assertIsNone(combine_date_and_time(day, None, TZ))

    def test_combine_rejects_bad_time_of_day(self):
        for value in ("25:00", "9h30", ""):
            with self.assertRaises(InvalidInput):
                combine_date_and_time(date(2030, 6, 3), value, TZ)

    def test_shift_minutes_is_elapsed_time_across_dst(self):
        # 31/03/2030: relógio pula de 02:00 para 03:00
        before = datetime(2030, 3, 31, 1, 30, tzinfo=TZ)
        self.assertEqual(shift_minutes(before, 60), datetime(2030, 3, 31, 3, 30, tzinfo=TZ))

    def test_overlaps_is_half_open(self):
        a = datetime(2030, 6, 3, 10, 0, tzinfo=TZ)
        b = datetime(2030, 6, 3, 11, 0, tzinfo=TZ)
        c = datetime(2030, 6, 3, 12, 0, tzinfo=TZ)
        self.assertFalse(overlaps(a, b, b, c))
        self.assertTrue(overlaps(a, c, b, c))
