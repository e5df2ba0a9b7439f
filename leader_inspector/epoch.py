"""
Epoch/slot arithmetic for Solana epochs.

first_absolute_slot is the fixed-width rule used on mainnet, where the
first slot of epoch N is simply N * slots_per_epoch. Clusters started with
warmup (devnet, testnet, local validators) double the epoch length from
MINIMUM_SLOTS_PER_EPOCH until firstNormalEpoch; EpochSchedule applies the
getEpochSchedule fields to get the real slot range on any cluster.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from leader_inspector.config import SLOTS_PER_EPOCH

MINIMUM_SLOTS_PER_EPOCH = 32


def _check(epoch: int, slots_per_epoch: int) -> None:
    if epoch < 0:
        raise ValueError(f"Expected a non-negative epoch, got {epoch}")
    if slots_per_epoch <= 0:
        raise ValueError(f"slots_per_epoch must be positive, got {slots_per_epoch}")


def first_absolute_slot(epoch: int, slots_per_epoch: int = SLOTS_PER_EPOCH) -> int:
    """First absolute slot of an epoch."""
    _check(epoch, slots_per_epoch)
    return epoch * slots_per_epoch


def last_absolute_slot(epoch: int, slots_per_epoch: int = SLOTS_PER_EPOCH) -> int:
    """Last absolute slot of an epoch (inclusive)."""
    return first_absolute_slot(epoch, slots_per_epoch) + slots_per_epoch - 1


@dataclass(frozen=True)
class EpochSchedule:
    """Cluster epoch layout as returned by getEpochSchedule."""
    slots_per_epoch: int = SLOTS_PER_EPOCH
    warmup: bool = False
    first_normal_epoch: int = 0
    first_normal_slot: int = 0

    @classmethod
    def from_rpc(cls, result: Mapping[str, Any]) -> "EpochSchedule":
        return cls(
            slots_per_epoch=result['slotsPerEpoch'],
            warmup=bool(result.get('warmup', False)),
            first_normal_epoch=result.get('firstNormalEpoch', 0),
            first_normal_slot=result.get('firstNormalSlot', 0),
        )

    def _in_warmup(self, epoch: int) -> bool:
        return self.warmup and epoch < self.first_normal_epoch

    def slots_in_epoch(self, epoch: int) -> int:
        _check(epoch, self.slots_per_epoch)
        if self._in_warmup(epoch):
            return MINIMUM_SLOTS_PER_EPOCH * 2 ** epoch
        return self.slots_per_epoch

    def first_slot(self, epoch: int) -> int:
        if not self.warmup:
            return first_absolute_slot(epoch, self.slots_per_epoch)
        _check(epoch, self.slots_per_epoch)
        if epoch <= self.first_normal_epoch:
            return (2 ** epoch - 1) * MINIMUM_SLOTS_PER_EPOCH
        return self.first_normal_slot + (epoch - self.first_normal_epoch) * self.slots_per_epoch

    def last_slot(self, epoch: int) -> int:
        if not self.warmup:
            return last_absolute_slot(epoch, self.slots_per_epoch)
        return self.first_slot(epoch) + self.slots_in_epoch(epoch) - 1
