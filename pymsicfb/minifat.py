import logging

from pymsicfb.context import CFBContext
from pymsicfb.util import unpack_uint32_array

log = logging.getLogger(__name__)

class CFBMinifatMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        # The MiniFAT is an ordinary FAT chained stream of unknown length
        data = self.ctx.stream_mgr.materialize(self.ctx.header.sector_start_minifat, 0)
        self.ctx.minifat = unpack_uint32_array(data)
        log.debug('MiniFAT holds %d entries', len(self.ctx.minifat))
