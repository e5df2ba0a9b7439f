from unittest.mock import Mock

import pytest
from requests import HTTPError

SLOTS_PER_EPOCH = 432000
VALIDATOR = "tri1cHBy47fPyhCvrCf6FnR7Mz6XdSoSBah2FsZVQeT"


class FakeRpc:
    """In-memory stand-in for SolanaRpcClient."""

    def __init__(self, epoch, slot_index, schedule, produced=(), proposers=None,
                 slots_per_epoch=SLOTS_PER_EPOCH, epoch_schedule=None, first_slot=None):
        self.epoch = epoch
        self.slot_index = slot_index
        self.schedule = schedule
        self.produced = set(produced)
        self.proposers = proposers or {}
        self.slots_per_epoch = slots_per_epoch
        self.epoch_schedule = epoch_schedule or {
            'slotsPerEpoch': slots_per_epoch, 'warmup': False, 'firstNormalEpoch': 0, 'firstNormalSlot': 0,
        }
        self.first_slot = epoch * slots_per_epoch if first_slot is None else first_slot
        self.schedule_requests = []
        self.range_requests = []

    def get_epoch_info(self):
        return {
            'epoch': self.epoch,
            'absoluteSlot': self.first_slot + self.slot_index,
            'slotIndex': self.slot_index,
            'slotsInEpoch': self.slots_per_epoch,
        }

    def get_epoch_schedule(self):
        return self.epoch_schedule

    def get_leader_schedule(self, slot):
        self.schedule_requests.append(slot)
        return self.schedule

    def produced_slots(self, start_slot, end_slot):
        self.range_requests.append((start_slot, end_slot))
        return {s for s in self.produced if start_slot <= s <= end_slot}

    def get_block_proposer(self, slot):
        return self.proposers.get(slot)


def json_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = str(data)
    if status_code >= 400:
        response.raise_for_status.side_effect = HTTPError(f"{status_code} Error")
    return response


@pytest.fixture
def fake_rpc_factory():
    return FakeRpc
