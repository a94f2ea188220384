import logging

from pymsicfb.context import CFBContext

log = logging.getLogger(__name__)

class CFBMinistreamMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        # Root Entry carries the start sector and true size of the mini stream
        root = self.ctx.directory[0]
        if root.size == 0:
            self.ctx.ministream = b''
            return

        self.ctx.ministream = self.ctx.stream_mgr.materialize(root.sector_start, root.size)
        if len(self.ctx.ministream) < root.size:
            log.warning('Mini stream truncated: %d of %d bytes', len(self.ctx.ministream), root.size)
        log.debug('Mini stream is %d bytes', len(self.ctx.ministream))
