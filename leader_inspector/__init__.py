from leader_inspector.annotations import LatencyRank, LeaderAnnotation
from leader_inspector.blocks import SlotBlock, extract_slot_blocks
from leader_inspector.classifier import BlockReport, SlotOutcome, SlotStatus, classify_block
from leader_inspector.epoch import EpochSchedule, first_absolute_slot
from leader_inspector.schedule import LeaderSchedule, leader_at

# Define what is exported when 'from leader_inspector import *' is used
__all__ = [
    'first_absolute_slot',
    'EpochSchedule',
    'LeaderSchedule',
    'leader_at',
    'SlotBlock',
    'extract_slot_blocks',
    'SlotOutcome',
    'SlotStatus',
    'BlockReport',
    'classify_block',
    'LatencyRank',
    'LeaderAnnotation',
]
