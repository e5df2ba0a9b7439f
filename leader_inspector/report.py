from typing import List, Optional

from leader_inspector.annotations import LeaderAnnotation
from leader_inspector.classifier import BlockReport, SlotOutcome, SlotStatus
from leader_inspector.config import LEADER_SLOTS_PER_BLOCK
from leader_inspector.inspector import InspectionReport

BRIGHT_RED = '\033[91m'
RESET = '\033[0m'

SEPARATOR = "-" * 40
UNAVAILABLE = "unavailable"
BAD_SKIP_MARKER = "##ON BAD SKIP LIST##"


def _paint(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{RESET}" if enabled else text


def format_annotation(annotation: LeaderAnnotation, color: bool = True) -> str:
    """Skip blame marker and latency suffix for a leader line."""
    parts = []
    if annotation.skip_blame is None:
        parts.append(f"(Skip blame: {UNAVAILABLE})")
    elif annotation.skip_blame:
        parts.append(_paint(BAD_SKIP_MARKER, BRIGHT_RED, color))

    if annotation.latency is None:
        parts.append(f"(Latency: {UNAVAILABLE}, Rank: {UNAVAILABLE})")
    else:
        parts.append(f"(Latency: {annotation.latency.average_latency:.6f}, Rank: {annotation.latency.rank})")
    return " ".join(parts)


def format_leader_line(label: str, slot: int, leader: Optional[str], block_report: BlockReport,
                       color: bool = True) -> str:
    if leader is None:
        return f"{label} Slot {slot} Leader: Unknown or No Leader"
    line = f"{label} Slot {slot} Leader: {leader}"
    if leader in block_report.annotations:
        line = f"{line} {format_annotation(block_report.annotations[leader], color)}"
    return line


def format_outcome(outcome: SlotOutcome) -> str:
    if outcome.status == SlotStatus.PRODUCED_BY_OTHER:
        return f"Slot {outcome.slot}: block produced by {outcome.proposer}, not us!"
    if outcome.status == SlotStatus.NO_BLOCK_INFO:
        return f"Slot {outcome.slot}: no block produced (skipped?) or no leader info. Not produced by us."
    if outcome.status == SlotStatus.PENDING:
        return f"Slot {outcome.slot}: upcoming"
    return f"Slot {outcome.slot}: produced by us"


def render_block(block_report: BlockReport, validator: str, color: bool = True, verbose: bool = False) -> List[str]:
    block = block_report.block
    short = f" (short block, {len(block)} of {LEADER_SLOTS_PER_BLOCK} slots)" if block.is_short() else ""
    when = ""
    if block_report.estimated_time is not None:
        when = f" at approximately {block_report.estimated_time.strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]} UTC"

    lines = [
        SEPARATOR,
        f"Block of slots: {list(block.slots)}{short}{when}",
        format_leader_line("Previous", block.previous_slot, block_report.previous_leader, block_report, color),
        f"Our Validator Slots {block.first_slot} - {block.last_slot}: {validator}",
        format_leader_line("Next", block.next_slot, block_report.next_leader, block_report, color),
    ]
    outcomes = block_report.outcomes if verbose else block_report.problems
    lines.extend(format_outcome(o) for o in outcomes)
    return lines


def render_report(report: InspectionReport, show_all: bool = False, color: bool = True) -> str:
    """Text report: header, then one section per block (only blocks with problems unless show_all)."""
    if report.is_current_epoch:
        lines = [f"Using current epoch: {report.epoch}"]
    else:
        lines = [f"Using configured epoch: {report.epoch}"]

    if not report.scheduled:
        lines.append(f"Validator {report.validator} is not scheduled to lead in epoch {report.epoch}.")
        return "\n".join(lines)

    lines.append(f"Validator {report.validator} is assigned to {report.assigned_slots} slots in epoch {report.epoch}.")
    lines.append(f"Using average slot duration: {report.average_slot_duration:.3f} seconds")

    blocks = report.blocks if show_all else report.problem_blocks()
    for block_report in blocks:
        lines.extend(render_block(block_report, report.validator, color=color, verbose=show_all))

    problem_count = len(report.problem_blocks())
    lines.append(SEPARATOR)
    lines.append(f"{problem_count} of {len(report.blocks)} blocks had slots not produced by us.")
    return "\n".join(lines)
