import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from leader_inspector.config import LEADER_SLOTS_PER_BLOCK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotBlock:
    """Consecutive absolute slots led by one validator in a single turn."""
    slots: Tuple[int, ...]

    @property
    def first_slot(self) -> int:
        return self.slots[0]

    @property
    def last_slot(self) -> int:
        return self.slots[-1]

    @property
    def previous_slot(self) -> int:
        return self.first_slot - 1

    @property
    def next_slot(self) -> int:
        return self.last_slot + 1

    def __len__(self):
        return len(self.slots)

    def is_short(self, batch_size: int = LEADER_SLOTS_PER_BLOCK) -> bool:
        return len(self.slots) < batch_size


def contiguous_runs(indices: Iterable[int]) -> List[List[int]]:
    """Group sorted, de-duplicated indices into maximal runs of consecutive integers."""
    runs: List[List[int]] = []
    for index in sorted(set(indices)):
        if runs and runs[-1][-1] + 1 == index:
            runs[-1].append(index)
        else:
            runs.append([index])
    return runs


def extract_slot_blocks(relative_indices: Iterable[int], first_slot: int,
                        batch_size: int = LEADER_SLOTS_PER_BLOCK) -> List[SlotBlock]:
    """
    Partition a validator's relative slot indices into leader blocks.

    Each maximal contiguous run is split into batch_size-slot blocks; a run
    whose length is not a multiple of batch_size ends in a short block and
    is logged, never rejected.

    Args:
        relative_indices: Relative slot indices of one validator in the epoch.
        first_slot: First absolute slot of the epoch.
        batch_size: Leader slots per turn (4 on Solana).
    Returns:
        List of SlotBlock in ascending slot order.
    """
    blocks: List[SlotBlock] = []
    for run in contiguous_runs(relative_indices):
        if len(run) % batch_size:
            logger.warning(
                f"Leader run at relative slots {run[0]}-{run[-1]} has {len(run)} slots, "
                f"not a multiple of {batch_size}; last block will be short"
            )
        for i in range(0, len(run), batch_size):
            chunk = run[i:i + batch_size]
            blocks.append(SlotBlock(tuple(first_slot + index for index in chunk)))
    return blocks
