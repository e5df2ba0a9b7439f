import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from leader_inspector.config import SLOTS_PER_EPOCH
from leader_inspector.epoch import first_absolute_slot

logger = logging.getLogger(__name__)


class LeaderSchedule:
    """
    Read-only leader schedule of one epoch.

    Holds identity -> sorted relative slot indices, plus the inverse
    relative index -> identity map used to resolve any absolute slot.
    """

    def __init__(self, epoch: int, slots: Mapping[str, Iterable[int]], slots_per_epoch: int = SLOTS_PER_EPOCH,
                 first_slot: Optional[int] = None):
        self.epoch = epoch
        self.slots_per_epoch = slots_per_epoch
        self.first_slot = first_absolute_slot(epoch, slots_per_epoch) if first_slot is None else first_slot

        by_identity: Dict[str, Tuple[int, ...]] = {}
        by_index: Dict[int, str] = {}
        for identity, indices in slots.items():
            ordered = tuple(sorted(int(i) for i in indices))
            by_identity[identity] = ordered
            for index in ordered:
                previous = by_index.get(index)
                if previous is not None and previous != identity:
                    logger.warning(f"Relative slot {index} of epoch {epoch} assigned to both {previous} and {identity}")
                by_index[index] = identity

        self._by_identity = MappingProxyType(by_identity)
        self._by_index = MappingProxyType(by_index)

    @classmethod
    def from_rpc(cls, epoch: int, result: Mapping[str, Iterable[int]], slots_per_epoch: int = SLOTS_PER_EPOCH,
                 first_slot: Optional[int] = None) -> "LeaderSchedule":
        """Build from a getLeaderSchedule result ({identity: [relative slots]})."""
        schedule = cls(epoch, result, slots_per_epoch, first_slot)
        logger.debug(f"Leader schedule for epoch {epoch}: {len(schedule)} leaders, {schedule.slot_count()} slots")
        return schedule

    def __len__(self) -> int:
        return len(self._by_identity)

    def __contains__(self, identity) -> bool:
        return identity in self._by_identity

    def slot_count(self) -> int:
        return len(self._by_index)

    def slots_for(self, identity: str) -> Tuple[int, ...]:
        """Relative slot indices led by identity, ascending. Empty when not scheduled."""
        return self._by_identity.get(identity, ())

    def leader_at(self, absolute_slot: int) -> Optional[str]:
        """Leader of an absolute slot, or None when the slot is outside this epoch's schedule."""
        relative_index = absolute_slot - self.first_slot
        if relative_index < 0 or relative_index >= self.slots_per_epoch:
            return None
        return self._by_index.get(relative_index)


def leader_at(schedule: LeaderSchedule, epoch: int, absolute_slot: int) -> Optional[str]:
    """Resolve the leader of absolute_slot in the given epoch's schedule; unknown slots give None."""
    if epoch != schedule.epoch:
        logger.debug(f"Schedule is for epoch {schedule.epoch}, asked about epoch {epoch}")
        return None
    return schedule.leader_at(absolute_slot)
