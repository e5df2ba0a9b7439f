import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

from leader_inspector.annotations import LeaderAnnotation
from leader_inspector.blocks import SlotBlock
from leader_inspector.rpc_client import RpcError
from leader_inspector.schedule import LeaderSchedule

logger = logging.getLogger(__name__)


class BlockProductionSource(Protocol):
    def produced_slots(self, start_slot: int, end_slot: int) -> set: ...

    def get_block_proposer(self, slot: int) -> Optional[str]: ...


class SlotStatus(Enum):
    PRODUCED_BY_TARGET = 'produced-by-target'
    PRODUCED_BY_OTHER = 'produced-by-other'
    NO_BLOCK_INFO = 'no-block-info'
    PENDING = 'pending'


@dataclass(frozen=True)
class SlotOutcome:
    slot: int
    status: SlotStatus
    proposer: Optional[str] = None

    @property
    def is_problem(self) -> bool:
        return self.status in (SlotStatus.PRODUCED_BY_OTHER, SlotStatus.NO_BLOCK_INFO)


@dataclass
class BlockReport:
    block: SlotBlock
    previous_leader: Optional[str]
    next_leader: Optional[str]
    outcomes: List[SlotOutcome]
    estimated_time: Optional[datetime] = None
    annotations: Dict[str, LeaderAnnotation] = field(default_factory=dict)

    @property
    def problems(self) -> List[SlotOutcome]:
        return [o for o in self.outcomes if o.is_problem]

    @property
    def has_problems(self) -> bool:
        return any(o.is_problem for o in self.outcomes)

    def annotation_for(self, identity: Optional[str]) -> LeaderAnnotation:
        if identity is None:
            return LeaderAnnotation()
        return self.annotations.get(identity, LeaderAnnotation())


def classify_slot(slot: int, validator: str, produced: set, production: BlockProductionSource) -> SlotOutcome:
    if slot not in produced:
        return SlotOutcome(slot, SlotStatus.NO_BLOCK_INFO)
    try:
        proposer = production.get_block_proposer(slot)
    except RpcError as e:
        logger.warning(f"Could not read the block at slot {slot}: {e}")
        return SlotOutcome(slot, SlotStatus.NO_BLOCK_INFO)
    if proposer is None:
        logger.warning(f"Slot {slot} has a block but no proposer information")
        return SlotOutcome(slot, SlotStatus.NO_BLOCK_INFO)
    if proposer == validator:
        return SlotOutcome(slot, SlotStatus.PRODUCED_BY_TARGET, proposer)
    return SlotOutcome(slot, SlotStatus.PRODUCED_BY_OTHER, proposer)


def classify_block(block: SlotBlock, schedule: LeaderSchedule, validator: str,
                   production: BlockProductionSource, current_slot: int,
                   on_slot: Optional[Callable[[SlotOutcome], None]] = None) -> BlockReport:
    """
    Resolve a block's neighbor leaders and the outcome of each of its slots.

    Neighbors outside the schedule's epoch come back as None. Slots after
    current_slot are PENDING and not queried; the rest are checked with one
    getBlocks range call plus one proposer lookup per produced slot. A
    proposer lookup that fails only marks its own slot NO_BLOCK_INFO; a
    failing getBlocks call propagates.
    """
    previous_leader = schedule.leader_at(block.previous_slot)
    next_leader = schedule.leader_at(block.next_slot)

    past_slots = [s for s in block.slots if s <= current_slot]
    produced = production.produced_slots(past_slots[0], past_slots[-1]) if past_slots else set()

    outcomes = []
    for slot in block.slots:
        if slot > current_slot:
            outcome = SlotOutcome(slot, SlotStatus.PENDING)
        else:
            outcome = classify_slot(slot, validator, produced, production)
        outcomes.append(outcome)
        if on_slot is not None:
            on_slot(outcome)

    return BlockReport(block, previous_leader, next_leader, outcomes)
