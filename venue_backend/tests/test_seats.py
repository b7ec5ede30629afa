import unittest

from venue_backend.app.seats import ReservedSeats, SeatId, SeatIdError


class TestSeatId(unittest.TestCase):
    def test_parse(self):
        s = SeatId.parse("A-1-5")
        self.assertEqual((s.section, s.row_label, s.seat_number), ("A", "1", "5"))
        self.assertEqual(s.row_key, ("A", "1"))
        self.assertEqual(str(s), "A-1-5")

    def test_section_may_contain_hyphens(self):
        s = SeatId.parse("Main-Floor-A-3")
        self.assertEqual((s.section, s.row_label, s.seat_number), ("Main-Floor", "A", "3"))
        self.assertEqual(str(s), "Main-Floor-A-3")

    def test_rejects_malformed(self):
        for raw in ("A5", "A-5", "-1-2", "A--2", "A-1-", ""):
            with self.subTest(raw=raw):
                with self.assertRaises(SeatIdError):
                    SeatId.parse(raw)

    def test_rejects_non_string(self):
        with self.assertRaises(SeatIdError):
            SeatId.parse(15)  # type: ignore[arg-type]


class TestReservedSeats(unittest.TestCase):
    def test_add_keeps_order_and_skips_duplicates(self):
        r = ReservedSeats(["A-1-5", "A-1-5", "A-1-2"])
        self.assertEqual(r.to_list(), ["A-1-5", "A-1-2"])
        self.assertTrue(r.add("A-1-7"))
        self.assertFalse(r.add("A-1-5"))
        self.assertEqual(r.to_list(), ["A-1-5", "A-1-2", "A-1-7"])
        self.assertIn("A-1-7", r)
        self.assertEqual(len(r), 3)

    def test_conflicts_in_candidate_order(self):
        r = ReservedSeats(["A-1-5", "A-1-6"])
        self.assertEqual(r.conflicts(["A-1-6", "A-1-7", "A-1-5"]), ["A-1-6", "A-1-5"])
        self.assertEqual(r.conflicts([]), [])

    def test_from_json_is_tolerant(self):
        self.assertEqual(len(ReservedSeats.from_json(None)), 0)
        self.assertEqual(len(ReservedSeats.from_json("")), 0)
        self.assertEqual(len(ReservedSeats.from_json("not json")), 0)
        self.assertEqual(len(ReservedSeats.from_json('{"a": 1}')), 0)
        self.assertEqual(ReservedSeats.from_json('["B-2-1", 7]').to_list(), ["B-2-1", "7"])
        self.assertEqual(ReservedSeats.from_json(["B-2-1"]).to_list(), ["B-2-1"])

    def test_json_round_trip(self):
        r = ReservedSeats(["A-1-5", "A-1-7"])
        self.assertEqual(ReservedSeats.from_json(r.to_json()), r)


if __name__ == "__main__":
    unittest.main()
