import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from tqdm import tqdm

from leader_inspector import config
from leader_inspector.annotations import LatencyRankClient, SkipBlameClient, annotate_leaders
from leader_inspector.blocks import extract_slot_blocks
from leader_inspector.classifier import BlockReport, classify_block
from leader_inspector.epoch import EpochSchedule
from leader_inspector.rpc_client import SolanaRpcClient
from leader_inspector.schedule import LeaderSchedule

logger = logging.getLogger(__name__)


class ScheduleUnavailable(Exception):
    """The RPC node has no usable epoch or leader schedule for the requested epoch."""


@dataclass
class InspectionReport:
    validator: str
    epoch: int
    current_epoch: int
    current_slot: int
    first_slot: int
    slots_per_epoch: int
    average_slot_duration: float
    scheduled: bool = False
    assigned_slots: int = 0
    blocks: List[BlockReport] = field(default_factory=list)

    @property
    def is_current_epoch(self) -> bool:
        return self.epoch == self.current_epoch

    def problem_blocks(self) -> List[BlockReport]:
        return [b for b in self.blocks if b.has_problems]


def estimate_slot_time(slot: int, current_slot: int, now: float, average_slot_duration: float) -> datetime:
    """Approximate wall-clock time of slot, extrapolated from the current slot."""
    estimated = now + average_slot_duration * (slot - current_slot)
    return datetime.fromtimestamp(estimated, tz=timezone.utc)


def fetch_epoch_schedule(rpc: SolanaRpcClient, epoch_info) -> EpochSchedule:
    result = rpc.get_epoch_schedule() or {}
    if not result.get('slotsPerEpoch'):
        result = dict(result, slotsPerEpoch=epoch_info['slotsInEpoch'])
    epoch_schedule = EpochSchedule.from_rpc(result)

    # absoluteSlot - slotIndex is the node's own first slot of the current epoch
    expected = epoch_info['absoluteSlot'] - epoch_info['slotIndex']
    computed = epoch_schedule.first_slot(epoch_info['epoch'])
    if computed != expected:
        raise ScheduleUnavailable(
            f"Epoch schedule puts epoch {epoch_info['epoch']} at slot {computed}, but the node reports {expected}"
        )
    return epoch_schedule


def fetch_schedule(rpc: SolanaRpcClient, epoch: int, epoch_schedule: EpochSchedule) -> LeaderSchedule:
    first_slot = epoch_schedule.first_slot(epoch)
    result = rpc.get_leader_schedule(first_slot)
    if result is None:
        raise ScheduleUnavailable(f"No leader schedule returned for epoch {epoch}")
    return LeaderSchedule.from_rpc(epoch, result, epoch_schedule.slots_in_epoch(epoch), first_slot)


def inspect_validator(validator: str, rpc: SolanaRpcClient, epoch: Optional[int] = None,
                      skip_blame: Optional[SkipBlameClient] = None,
                      latency: Optional[LatencyRankClient] = None,
                      show_all: bool = False,
                      max_workers: int = config.ANNOTATION_WORKERS,
                      average_slot_duration: float = config.AVERAGE_SLOT_DURATION,
                      show_progress: bool = True,
                      now: Optional[float] = None) -> InspectionReport:
    """
    Run one inspection of validator's leader slots.

    Args:
        validator: Validator identity pubkey (already validated).
        rpc: Solana RPC client.
        epoch: Epoch to inspect; the current epoch when None.
        skip_blame: Skip blame client; no blame annotations when None.
        latency: Latency/rank client; no latency annotations when None.
        show_all: Annotate every block, not only blocks with non-produced slots.
        max_workers: Thread pool size for annotation fetches.
        average_slot_duration: Seconds per slot used for time estimates.
        show_progress: Display tqdm progress bars.
        now: Unix time used as "now" for time estimates.
    Returns:
        InspectionReport. RpcError and ScheduleUnavailable propagate.
    """
    epoch_info = rpc.get_epoch_info()
    current_epoch = epoch_info['epoch']
    current_slot = epoch_info['absoluteSlot']
    epoch_schedule = fetch_epoch_schedule(rpc, epoch_info)

    if epoch is None:
        epoch = current_epoch
        logger.info(f"Using current epoch: {epoch}")
    else:
        logger.info(f"Using configured epoch: {epoch} (current epoch {current_epoch})")

    first_slot = epoch_schedule.first_slot(epoch)
    slots_per_epoch = epoch_schedule.slots_in_epoch(epoch)
    logger.info(f"Epoch {epoch} slot range: {first_slot} to {epoch_schedule.last_slot(epoch)}")

    report = InspectionReport(
        validator=validator,
        epoch=epoch,
        current_epoch=current_epoch,
        current_slot=current_slot,
        first_slot=first_slot,
        slots_per_epoch=slots_per_epoch,
        average_slot_duration=average_slot_duration,
    )

    schedule = fetch_schedule(rpc, epoch, epoch_schedule)
    our_slots = schedule.slots_for(validator)
    if not our_slots:
        logger.info(f"Validator {validator} is not scheduled to lead in epoch {epoch}")
        return report

    report.scheduled = True
    report.assigned_slots = len(our_slots)
    blocks = extract_slot_blocks(our_slots, first_slot)
    logger.info(f"Validator {validator} has {len(our_slots)} slots in {len(blocks)} blocks in epoch {epoch}")

    if now is None:
        now = time.time()

    total_slots = sum(len(b) for b in blocks)
    with tqdm(total=total_slots, desc="Checking slots", unit="slot", disable=not show_progress) as progress:
        for block in blocks:
            block_report = classify_block(block, schedule, validator, rpc, current_slot,
                                          on_slot=lambda _: progress.update(1))
            block_report.estimated_time = estimate_slot_time(block.first_slot, current_slot, now, average_slot_duration)
            report.blocks.append(block_report)

    reported = report.blocks if show_all else report.problem_blocks()
    neighbors = {leader for b in reported for leader in (b.previous_leader, b.next_leader) if leader}
    if neighbors and (skip_blame is not None or latency is not None):
        annotations = annotate_leaders(neighbors, skip_blame, latency, max_workers=max_workers,
                                       show_progress=show_progress)
        for block_report in reported:
            for leader in (block_report.previous_leader, block_report.next_leader):
                if leader in annotations:
                    block_report.annotations[leader] = annotations[leader]

    return report
