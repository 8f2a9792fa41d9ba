"""
Tests for record ID generation.
"""

from carfleet.sheets.ids import id_number, next_id


class TestNextId:
    def test_after_highest(self):
        assert next_id("C", ["C1", "C2", "C5"]) == "C6"

    def test_empty_sheet(self):
        assert next_id("C", []) == "C1"

    def test_non_numeric_suffixes_are_ignored(self):
        assert next_id("C", ["C1", "Cabc", "C2x", "", None]) == "C2"

    def test_other_prefixes_are_ignored(self):
        assert next_id("R", ["RN7", "R3", "C9"]) == "R4"

    def test_rental_prefix(self):
        assert next_id("RN", ["RN1", "RN10", "RN9"]) == "RN11"

    def test_unpadded_and_zero_padded_ids_count_alike(self):
        assert next_id("S", ["S001", "S0002"]) == "S3"

    def test_order_does_not_matter(self):
        assert next_id("P", ["P3", "P1", "P2"]) == "P4"


class TestIdNumber:
    def test_parses_suffix(self):
        assert id_number("RN", "RN14") == 14

    def test_foreign_or_malformed(self):
        assert id_number("C", "R1") == 0
        assert id_number("C", "C-1") == 0
        assert id_number("C", None) == 0
