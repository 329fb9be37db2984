import unittest

from activity_viewer.models import LogEntry
from activity_viewer.phase_stats import compute_phase_stats, sort_phases, work_unit_key


def _entry(log_seq: int, action: str, task_id=None, phase="implementation", agent="dev") -> LogEntry:
    return LogEntry(
        log_seq=log_seq,
        timestamp=f"2026-03-01T10:00:{log_seq:02d}Z",
        agent=agent,
        action=action,
        phase=phase,
        task_id=task_id,
    )


class SortPhasesTests(unittest.TestCase):
    def test_known_phases_follow_canonical_order(self) -> None:
        self.assertEqual(
            sort_phases(["testing", "design", "requirements", "implementation", "review"]),
            ["requirements", "design", "implementation", "review", "testing"],
        )

    def test_unknown_phases_sort_alphabetically_after_known(self) -> None:
        self.assertEqual(
            sort_phases(["custom-phase", "implementation", "alpha-phase", "design"]),
            ["design", "implementation", "alpha-phase", "custom-phase"],
        )


class PhaseStatsTests(unittest.TestCase):
    def test_work_units_complete_fail_and_in_progress(self) -> None:
        stats = compute_phase_stats(
            [
                _entry(1, "START", "T1"),
                _entry(2, "COMPLETE", "T1"),
                _entry(3, "START", "T2"),
                _entry(4, "START", "T3"),
                _entry(5, "ERROR", "T3"),
            ]
        )

        self.assertEqual(len(stats), 1)
        phase = stats[0]
        self.assertEqual(phase.name, "implementation")
        self.assertEqual((phase.total, phase.completed, phase.failures, phase.inProgress), (3, 1, 1, 1))
        self.assertEqual(phase.percentage, 33)

    def test_units_without_start_are_not_counted(self) -> None:
        stats = compute_phase_stats([_entry(1, "COMPLETE", "T1"), _entry(2, "DECISION", "T2")])
        self.assertEqual((stats[0].total, stats[0].percentage), (0, 0))

    def test_latest_entry_decides_outcome(self) -> None:
        stats = compute_phase_stats(
            [_entry(1, "START", "T1"), _entry(2, "REVIEW_FAIL", "T1"), _entry(3, "REVIEW_PASS", "T1")]
        )
        self.assertEqual((stats[0].completed, stats[0].failures, stats[0].percentage), (1, 0, 100))

    def test_entries_without_task_id_are_their_own_units(self) -> None:
        self.assertEqual(work_unit_key(_entry(4, "START")), "dev|4")
        self.assertEqual(work_unit_key(_entry(4, "START", "T9")), "dev|T9")

        stats = compute_phase_stats([_entry(1, "START"), _entry(2, "COMPLETE")])
        self.assertEqual((stats[0].total, stats[0].completed, stats[0].inProgress), (1, 0, 1))

    def test_percentage_rounds_half_up(self) -> None:
        entries = [_entry(1, "START", "T1"), _entry(2, "COMPLETE", "T1")]
        entries += [_entry(10 + i, "START", f"U{i}") for i in range(7)]
        # 1 of 8 units complete -> 12.5%
        self.assertEqual(compute_phase_stats(entries)[0].percentage, 13)

    def test_bounds_hold_for_every_phase(self) -> None:
        entries = [
            _entry(1, "START", "T1", phase="design"),
            _entry(2, "TEST_PASS", "T1", phase="design"),
            _entry(3, "START", "T1", phase="design", agent="qa"),
            _entry(4, "START", "T2", phase="zeta"),
            _entry(5, "TEST_FAIL", "T2", phase="zeta"),
            _entry(6, "START", None, phase=""),
        ]

        stats = compute_phase_stats(entries)

        self.assertEqual([s.name for s in stats], ["design", "zeta"])
        for s in stats:
            self.assertTrue(0 <= s.percentage <= 100)
            self.assertEqual(s.completed + s.failures + s.inProgress, s.total)


if __name__ == "__main__":
    unittest.main()
