import unittest

from activity_viewer.filters import (
    apply_filters,
    clear_all,
    clear_filter,
    create_empty_filter_state,
    is_filter_active,
    set_file_filter,
    set_filter,
    set_requirement_filter,
    toggle_filter_value,
)
from activity_viewer.models import LogEntry


def _entry(log_seq: int, agent: str, action: str, phase: str = "implementation", **kwargs) -> LogEntry:
    data = {
        "log_seq": log_seq,
        "timestamp": f"2026-03-01T10:00:{log_seq:02d}Z",
        "agent": agent,
        "action": action,
        "phase": phase,
        "work_seq": "WS-1",
    }
    data.update(kwargs)
    return LogEntry(**data)


ENTRIES = [
    _entry(1, "dev", "START", requirements=["REQ-1"]),
    _entry(2, "dev", "FILE_CREATE", files_created=["src/a.py"]),
    _entry(3, "qa", "START", phase="testing", work_seq="WS-2"),
    _entry(4, "qa", "TEST_FAIL", phase="testing", work_seq="WS-2", files_modified=["src/a.py"]),
    _entry(5, "arch", "DECISION", phase="design", requirements=["REQ-2"]),
]


class FilterTests(unittest.TestCase):
    def test_empty_state_returns_input_unchanged(self) -> None:
        state = create_empty_filter_state()
        self.assertFalse(is_filter_active(state))
        self.assertIs(apply_filters(ENTRIES, state), ENTRIES)

    def test_or_within_dimension_and_across_dimensions(self) -> None:
        state = set_filter(create_empty_filter_state(), "agents", ["dev", "qa"])
        state = set_filter(state, "actions", ["START"])

        self.assertEqual([e.log_seq for e in apply_filters(ENTRIES, state)], [1, 3])

    def test_file_filter_matches_created_or_modified(self) -> None:
        state = set_file_filter(create_empty_filter_state(), "src/a.py")
        self.assertEqual([e.log_seq for e in apply_filters(ENTRIES, state)], [2, 4])

    def test_requirement_filter(self) -> None:
        state = set_requirement_filter(create_empty_filter_state(), "REQ-2")
        self.assertEqual([e.log_seq for e in apply_filters(ENTRIES, state)], [5])

    def test_phase_and_work_seq_filters(self) -> None:
        state = set_filter(create_empty_filter_state(), "phases", ["testing", "design"])
        state = set_filter(state, "workSeqs", ["WS-2"])
        self.assertEqual([e.log_seq for e in apply_filters(ENTRIES, state)], [3, 4])

    def test_toggle_adds_then_removes(self) -> None:
        state = toggle_filter_value(create_empty_filter_state(), "agents", "qa")
        self.assertEqual(state.agents, {"qa"})
        state = toggle_filter_value(state, "agents", "qa")
        self.assertEqual(state.agents, set())
        self.assertFalse(is_filter_active(state))

    def test_transitions_do_not_mutate_previous_state(self) -> None:
        original = set_filter(create_empty_filter_state(), "agents", ["dev"])
        toggled = toggle_filter_value(original, "agents", "qa")
        cleared = clear_filter(toggled, "agents")

        self.assertEqual(original.agents, {"dev"})
        self.assertEqual(toggled.agents, {"dev", "qa"})
        self.assertEqual(cleared.agents, set())

    def test_clear_all_resets_everything(self) -> None:
        self.assertFalse(is_filter_active(clear_all()))

    def test_unknown_dimension_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            set_filter(create_empty_filter_state(), "colors", ["red"])


if __name__ == "__main__":
    unittest.main()
