import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import Sector
from pymsicfb.util import unpack_uint32_array

log = logging.getLogger(__name__)

def _is_chain_end(value: int) -> bool:
    return value in (Sector.ENDOFCHAIN, Sector.FREESECT)

class CFBDifatMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        difat: list[int] = []

        # The first 109 entries live in the header, the list ends at the first sentinel
        for value in self.ctx.header.sector_data_difat:
            if _is_chain_end(value): break
            difat.append(value)

        # The rest are chained through DIFAT sectors, the last entry of each points to the next one
        current = self.ctx.header.sector_start_difat
        steps = 0
        while not _is_chain_end(current):
            if steps >= MAX_DIFAT_CHAIN:
                log.warning('DIFAT chain longer than %d sectors, truncated', MAX_DIFAT_CHAIN)
                break
            steps += 1

            sector = self.ctx.read_sector(current)
            if len(sector) < self.ctx.sector_size_bytes:
                log.warning('DIFAT sector %Xh lies beyond the end of file', current)
                break

            entries = unpack_uint32_array(sector)
            for value in entries[:self.ctx.difat_entries_per_sector]:
                if not _is_chain_end(value): difat.append(value)
            current = entries[self.ctx.difat_entries_per_sector]

        log.debug('DIFAT lists %d FAT sectors (%d DIFAT sectors followed)', len(difat), steps)
        self.ctx.difat = difat
