import unittest

from activity_viewer.parsers.requirements import expand_all_requirements, expand_requirement_range


class RequirementRangeTests(unittest.TestCase):
    def test_expands_inclusive_range(self) -> None:
        expanded = expand_requirement_range("P-001 through P-005")
        self.assertEqual(len(expanded), 5)
        self.assertEqual(expanded[0], "P-001")
        self.assertEqual(expanded[-1], "P-005")

    def test_reversed_range_is_returned_unchanged(self) -> None:
        self.assertEqual(expand_requirement_range("P-005 through P-001"), ["P-005 through P-001"])

    def test_plain_id_is_returned_unchanged(self) -> None:
        self.assertEqual(expand_requirement_range("REQ-CORE-FN-007"), ["REQ-CORE-FN-007"])

    def test_mismatched_prefix_is_not_a_range(self) -> None:
        self.assertEqual(expand_requirement_range("A-1 through B-3"), ["A-1 through B-3"])

    def test_keyword_is_case_insensitive(self) -> None:
        self.assertEqual(expand_requirement_range("REQ-9 THROUGH REQ-11"), ["REQ-9", "REQ-10", "REQ-11"])

    def test_padding_follows_start_width(self) -> None:
        self.assertEqual(
            expand_requirement_range("REQ-CORE-FN-098 through REQ-CORE-FN-101"),
            ["REQ-CORE-FN-098", "REQ-CORE-FN-099", "REQ-CORE-FN-100", "REQ-CORE-FN-101"],
        )

    def test_expand_all_flattens_in_order(self) -> None:
        self.assertEqual(
            expand_all_requirements(["X-1", "Y-01 through Y-03"]),
            ["X-1", "Y-01", "Y-02", "Y-03"],
        )


if __name__ == "__main__":
    unittest.main()
