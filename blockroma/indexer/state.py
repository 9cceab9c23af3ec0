from dataclasses import dataclass

import time
from datetime import datetime
from typing import Optional

from blockroma.common.structs import BlockRange


@dataclass
class IndexerState:
    last_imported_block: Optional[int] = None

    last_check: float = 0.0
    started_at: int = 0

    total_blocks: int = 0
    last_check_blocks: int = 0
    new_check_blocks: int = 0

    imported_ranges: int = 0
    dropped_ranges: int = 0

    catchup_range: Optional[BlockRange] = None
    realtime_queue_size: int = 0

    CHECK_TIMEOUT: int = 30

    def as_dict(self):
        return {
            'last_block': self.last_imported_block,
            'speed': self.total_speed,
            'speed_last_30_seconds': self.speed,
            'started_at': datetime.fromtimestamp(self.started_at).isoformat(),
            'blocks': self.total_blocks,
            'imported_ranges': self.imported_ranges,
            'dropped_ranges': self.dropped_ranges,
            'catchup_range': str(self.catchup_range) if self.catchup_range else None,
            'realtime_queue_size': self.realtime_queue_size,
        }

    def update(self, last_block: Optional[int], blocks_count: int) -> None:
        """
        `last_block` is the highest block actually written, None when the node
        has returned none of the range.
        """
        self.imported_ranges += 1

        if last_block is not None and (self.last_imported_block is None or self.last_imported_block < last_block):
            self.last_imported_block = last_block

        self.total_blocks += blocks_count
        self.new_check_blocks += blocks_count

        if not self.last_check:
            self.last_check = time.monotonic()

        if (time.monotonic() - self.last_check) > self.CHECK_TIMEOUT:
            self.last_check = time.monotonic()
            self.last_check_blocks = self.new_check_blocks
            self.new_check_blocks = 0

    def drop(self) -> None:
        self.dropped_ranges += 1

    @property
    def speed(self):
        if self.last_check_blocks:
            return round(self.last_check_blocks / self.CHECK_TIMEOUT, 3)
        return 0

    @property
    def total_speed(self):
        if self.total_blocks and self.started_at:
            return round(self.total_blocks / max(time.time() - self.started_at, 1))
        return 0
