#!/usr/bin/env python3
"""
Test the wave and round ledgers of shield drone counts.
"""

import pytest

import log_samples as s
from arbitration_log.log.accumulator import MAX_WAVE_INDEX, MissionAccumulator, calc_per_min, pick_total_sec
from arbitration_log.log.line_feeder import iter_text_lines
from arbitration_log.log.models import MissionKind, PhaseCount, StartKind
from arbitration_log.log.segmenter import segment_lines


def run_mission(body):
    lines = [s.mission_name(100), s.host_loading(101), s.started(110)]
    lines += body
    lines += [s.ending(900), s.mission_end(902)]
    [mission] = segment_lines(iter_text_lines(s.to_text(lines)))
    return mission


def counts(mission):
    return [p.count for p in mission.phases]


def test_defense_waves():
    mission = run_mission([
        s.wave(120, 1),
        s.drone(121),
        s.wave(200, 2),
        s.drone(201),
        s.drone(202),
        s.wave(300, 3),
        s.wave(400, 4),
        s.drone(401),
    ])
    assert mission.mission_kind == MissionKind.WAVE
    assert mission.wave_count == 4
    assert mission.round_count == 2
    assert mission.phases == (
        PhaseCount(MissionKind.WAVE, 1, 1),
        PhaseCount(MissionKind.WAVE, 2, 2),
        PhaseCount(MissionKind.WAVE, 3, 0),
        PhaseCount(MissionKind.WAVE, 4, 1),
    )
    assert mission.shield_drone_count == 4


def test_drones_before_first_wave_go_to_wave_one():
    mission = run_mission([s.drone(111), s.drone(112), s.wave(120, 1), s.drone(121)])
    assert counts(mission) == [3]
    assert mission.wave_count == 1
    assert mission.round_count == 1


def test_repeated_wave_marker_does_not_fold_again():
    mission = run_mission([s.drone(111), s.wave(120, 1), s.drone(121), s.wave(122, 1), s.drone(123)])
    assert counts(mission) == [3]


def test_skipped_wave_leaves_empty_phase():
    mission = run_mission([s.wave(120, 1), s.drone(121), s.wave(300, 3), s.drone(301)])
    assert counts(mission) == [1, 0, 1]
    assert mission.wave_count == 3
    assert mission.round_count == 1


@pytest.mark.parametrize("bogus_index", [MAX_WAVE_INDEX + 1, 3_000_000, 123456789012])
def test_implausible_wave_index_is_ignored(bogus_index):
    mission = run_mission([s.wave(120, 1), s.drone(121), s.wave(130, bogus_index), s.drone(131)])
    assert mission.wave_count == 1
    assert counts(mission) == [2]


def test_wave_index_at_limit_is_accepted():
    mission = run_mission([s.wave(120, MAX_WAVE_INDEX), s.drone(121)])
    assert mission.wave_count == MAX_WAVE_INDEX
    assert len(mission.phases) == MAX_WAVE_INDEX
    assert mission.phases[-1].count == 1


def test_rounds_fold_pending_into_round_one():
    mission = run_mission(
        [s.drone(120 + i) for i in range(7)]
        + [s.round_transmission(200)]
        + [s.drone(210 + i) for i in range(3)]
    )
    assert mission.mission_kind == MissionKind.ROUND
    assert mission.phases == (PhaseCount(MissionKind.ROUND, 1, 7),)
    assert mission.round_count == 1
    assert mission.wave_count is None
    assert mission.shield_drone_count == 10


def test_completed_rounds_only():
    mission = run_mission([
        s.drone(120), s.drone(121),
        s.round_transmission(200),
        s.drone(210),
        s.round_transmission(300),
        s.drone(310), s.drone(311), s.drone(312),
    ])
    assert counts(mission) == [2, 1]
    assert mission.round_count == 2
    assert mission.shield_drone_count == 6


def test_reward_transition_out_as_round_fallback():
    mission = run_mission([
        s.drone(120),
        s.reward_transition_out(200),
        s.drone(210), s.drone(211),
        s.reward_transition_out(300),
    ])
    assert mission.mission_kind == MissionKind.ROUND
    assert counts(mission) == [1, 2]


def test_reward_transition_out_ignored_once_round_transmission_seen():
    mission = run_mission([
        s.drone(120),
        s.round_transmission(200),
        s.reward_transition_out(201),
        s.drone(210),
        s.round_transmission(300),
        s.reward_transition_out(301),
    ])
    assert counts(mission) == [1, 1]
    assert mission.round_count == 2


def test_reward_transition_out_ignored_in_wave_mission():
    mission = run_mission([
        s.wave(120, 1), s.drone(121),
        s.wave(200, 2), s.drone(201),
        s.wave(300, 3), s.drone(301),
        s.reward_transition_out(350),
        s.wave(400, 4), s.drone(401),
    ])
    assert mission.mission_kind == MissionKind.WAVE
    assert counts(mission) == [1, 1, 1, 1]


def test_round_transmission_ignored_in_wave_mission():
    mission = run_mission([s.wave(120, 1), s.drone(121), s.round_transmission(200), s.drone(201)])
    assert mission.mission_kind == MissionKind.WAVE
    assert counts(mission) == [2]


def test_defense_reclassified_when_reward_marker_precedes_first_wave():
    # The reward transition can appear before the first wave marker of a
    # defense mission; the wave index then takes over the classification.
    mission = run_mission([
        s.reward_transition_out(115),
        s.wave(120, 1), s.drone(121),
        s.wave(200, 2), s.drone(201), s.drone(202),
    ])
    assert mission.mission_kind == MissionKind.WAVE
    assert counts(mission) == [1, 2]
    assert mission.wave_count == 2
    assert mission.round_count == 1


def test_wave_marker_does_not_reclassify_confirmed_rounds():
    mission = run_mission([
        s.drone(120),
        s.round_transmission(200),
        s.wave(205, 1),
        s.drone(210),
        s.round_transmission(300),
    ])
    assert mission.mission_kind == MissionKind.ROUND
    assert counts(mission) == [1, 1]


def test_phase_markers_outside_started_window_are_ignored():
    lines = [
        s.mission_name(100), s.host_loading(101),
        s.wave(105, 1),
        s.started(110),
        s.drone(120),
        s.ending(200),
        s.round_transmission(201),
        s.mission_end(202),
    ]
    [mission] = segment_lines(iter_text_lines(s.to_text(lines)))
    assert mission.mission_kind == MissionKind.UNCLASSIFIED
    assert mission.phases == ()
    assert mission.shield_drone_count == 1


def test_phase_counts_add_up_to_drone_total():
    mission = run_mission([
        s.drone(111),
        s.wave(120, 1), s.drone(121), s.drone(122),
        s.wave(200, 2), s.drone(201),
        s.wave(300, 3), s.drone(301), s.drone(302), s.drone(303),
    ])
    assert sum(counts(mission)) == mission.shield_drone_count == 7


def test_accumulator_round_without_boundary_has_no_rounds():
    acc = MissionAccumulator(StartKind.MISSION_NAME, 1, 0.0)
    acc.mark_started(2, 1.0)
    acc.count_shield_drone()
    mission = acc.finalize(1)
    assert mission.round_count is None
    assert mission.phases == ()


@pytest.mark.parametrize("candidates,expected", [
    ((90.0, 120.0, 80.0, 200.0), 90.0),
    ((None, 120.0, 80.0, 200.0), 120.0),
    ((None, -5.0, 80.0, 200.0), 80.0),
    ((None, None, 0.0, 200.0), 200.0),
    ((None, None, None, None), None),
    ((float("nan"), float("inf"), 30.0), 30.0),
])
def test_pick_total_sec(candidates, expected):
    assert pick_total_sec(*candidates) == expected


def test_calc_per_min():
    assert calc_per_min(10, 120.0) == pytest.approx(5.0)
    assert calc_per_min(10, 0.0) is None
    assert calc_per_min(10, None) is None


if __name__ == "__main__":
    exit(pytest.main([__file__]))
