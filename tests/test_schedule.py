import pytest

from leader_inspector.epoch import first_absolute_slot
from leader_inspector.schedule import LeaderSchedule, leader_at

RAW_SCHEDULE = {
    'LeaderA': [0, 1, 2, 3, 12, 13, 14, 15],
    'LeaderB': [4, 5, 6, 7],
    'LeaderC': [11, 10, 9, 8],
}


@pytest.fixture
def schedule():
    return LeaderSchedule.from_rpc(250, RAW_SCHEDULE, 432000)


@pytest.mark.unit
def test_leader_at_inverts_schedule(schedule):
    first_slot = first_absolute_slot(250, 432000)
    for identity, indices in RAW_SCHEDULE.items():
        for index in indices:
            assert leader_at(schedule, 250, first_slot + index) == identity


@pytest.mark.unit
def test_slots_are_sorted(schedule):
    assert schedule.slots_for('LeaderC') == (8, 9, 10, 11)
    assert schedule.slots_for('Nobody') == ()
    assert 'LeaderB' in schedule
    assert len(schedule) == 3
    assert schedule.slot_count() == 16


@pytest.mark.unit
def test_out_of_epoch_lookups_are_unknown(schedule):
    first_slot = schedule.first_slot
    assert schedule.leader_at(first_slot - 1) is None
    assert schedule.leader_at(first_slot + 432000) is None
    # inside the epoch but not in the (partial) schedule
    assert schedule.leader_at(first_slot + 16) is None


@pytest.mark.unit
def test_leader_at_other_epoch_is_unknown(schedule):
    assert leader_at(schedule, 251, schedule.first_slot) is None


@pytest.mark.unit
def test_schedule_is_read_only():
    raw = {'LeaderA': [0, 1, 2, 3]}
    schedule = LeaderSchedule(250, raw, 432000)
    raw['LeaderA'].append(4)
    raw['LeaderD'] = [5]
    assert schedule.slots_for('LeaderA') == (0, 1, 2, 3)
    assert 'LeaderD' not in schedule
    assert schedule.leader_at(schedule.first_slot + 5) is None


@pytest.mark.unit
def test_explicit_first_slot():
    schedule = LeaderSchedule(250, RAW_SCHEDULE, 432000, first_slot=102_476_256)
    assert schedule.leader_at(102_476_256 + 4) == 'LeaderB'
    assert schedule.leader_at(108_000_004) is None
