import json
import unittest

from activity_viewer.parsers.activity_log import (
    parse_incremental_content,
    parse_line,
    parse_log_content,
)


def _line(log_seq, action="START", **extra) -> str:
    payload = {
        "log_seq": log_seq,
        "timestamp": f"2026-03-01T10:00:{log_seq:02d}Z",
        "agent": "dev",
        "action": action,
        "phase": "implementation",
        "work_seq": "WS-1",
    }
    payload.update(extra)
    return json.dumps(payload)


class ActivityLogParserTests(unittest.TestCase):
    def test_counts_malformed_lines_and_keeps_order(self) -> None:
        content = "\n".join(
            [
                _line(1),
                "{not json",
                "",
                _line(2, "COMPLETE"),
                json.dumps({"log_seq": 3, "timestamp": "2026-03-01T10:00:03Z", "agent": "dev"}),
                "[1, 2, 3]",
                "   ",
                _line(4, "DECISION"),
            ]
        )

        result = parse_log_content(content)

        self.assertEqual([e.log_seq for e in result.entries], [1, 2, 4])
        self.assertEqual(result.skippedLines, 3)
        self.assertGreaterEqual(result.parseTimeMs, 0.0)

    def test_empty_content(self) -> None:
        result = parse_log_content("")
        self.assertEqual(result.entries, [])
        self.assertEqual(result.skippedLines, 0)

    def test_null_required_field_is_malformed(self) -> None:
        self.assertIsNone(parse_line(json.dumps({"log_seq": 1, "timestamp": "t", "agent": None, "action": "START"})))

    def test_non_integral_log_seq_is_malformed(self) -> None:
        self.assertIsNone(parse_line(_line(1).replace('"log_seq": 1', '"log_seq": 1.5')))
        self.assertIsNone(parse_line(_line(1).replace('"log_seq": 1', '"log_seq": "abc"')))

    def test_optional_fields_default_and_unknown_action_passes_through(self) -> None:
        entry = parse_line(
            json.dumps({"log_seq": 7, "timestamp": "2026-03-01T10:00:00Z", "agent": "qa", "action": "CUSTOM_THING"})
        )

        self.assertIsNotNone(entry)
        self.assertEqual(entry.action, "CUSTOM_THING")
        self.assertEqual(entry.phase, "")
        self.assertIsNone(entry.task_id)
        self.assertIsNone(entry.parent_log_seq)
        self.assertEqual(entry.files_created, [])
        self.assertEqual(entry.requirements, [])

    def test_lists_and_parent_are_read(self) -> None:
        entry = parse_line(
            _line(
                5,
                "FILE_CREATE",
                parent_log_seq=1,
                task_id="T1",
                files_created=["src/a.py"],
                files_modified=["src/b.py"],
                requirements=["REQ-1"],
                duration_ms=1200,
            )
        )

        self.assertEqual(entry.parent_log_seq, 1)
        self.assertEqual(entry.task_id, "T1")
        self.assertEqual(entry.files_created, ["src/a.py"])
        self.assertEqual(entry.files_modified, ["src/b.py"])
        self.assertEqual(entry.requirements, ["REQ-1"])
        self.assertEqual(entry.duration_ms, 1200.0)

    def test_incremental_keeps_only_entries_past_watermark(self) -> None:
        content = "\n".join([_line(1), _line(2, "COMPLETE"), "garbage", _line(3), _line(4, "COMPLETE")])

        full = parse_log_content(content)
        incremental = parse_incremental_content(content, 2)

        self.assertEqual(
            [e.log_seq for e in incremental.entries],
            [e.log_seq for e in full.entries if e.log_seq > 2],
        )
        self.assertEqual(incremental.skippedLines, 1)

    def test_incremental_with_watermark_beyond_content_is_empty(self) -> None:
        content = "\n".join([_line(1), _line(2)])
        self.assertEqual(parse_incremental_content(content, 10).entries, [])


if __name__ == "__main__":
    unittest.main()
