import logging

from pymsicfb.context import CFBContext
from pymsicfb.errors import CFBStructureError
from pymsicfb.util import unpack_uint32_array

log = logging.getLogger(__name__)

class CFBFatMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        fat: list[int] = []
        for sector_number in self.ctx.difat:
            sector = self.ctx.read_sector(sector_number)
            if len(sector) < self.ctx.sector_size_bytes:
                log.warning('FAT sector %Xh lies beyond the end of file, skipped', sector_number)
                continue
            fat.extend(unpack_uint32_array(sector))

        if not fat:
            raise CFBStructureError('Failed to load FAT')

        log.debug('FAT holds %d entries', len(fat))
        self.ctx.fat = fat
