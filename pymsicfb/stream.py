import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import Sector
from pymsicfb.types import DirRecord

log = logging.getLogger(__name__)

class CFBStreamMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def materialize(self, start_sector: int, size: int, mini: bool = False) -> bytes:
        """
        Follows a sector chain from start_sector and concatenates the sectors.
        A size of 0 means the length is unknown and the chain is read up to its end.
        The result is never longer than size, a shorter result means the chain is broken.
        """
        table = self.ctx.minifat if mini else self.ctx.fat
        unit = self.ctx.minisector_size_bytes if mini else self.ctx.sector_size_bytes
        max_steps = (size // unit) + MAX_SECTOR_SLACK if size > 0 else MAX_UNBOUNDED_SECTORS

        chunks: list[bytes] = []
        gathered = 0
        steps = 0
        sector = start_sector

        while sector not in (Sector.ENDOFCHAIN, Sector.FREESECT):
            if sector >= len(table):
                log.warning('Sector %Xh outside of the %s (%d entries)', sector, 'MiniFAT' if mini else 'FAT', len(table))
                break
            if steps >= max_steps:
                log.warning('Sector chain from %Xh exceeds %d steps, truncated', start_sector, max_steps)
                break
            steps += 1

            if mini:
                offset = sector * unit
                if offset + unit <= len(self.ctx.ministream):
                    chunk = self.ctx.ministream[offset : offset + unit]
                else:
                    chunk = b''
            else:
                chunk = self.ctx.read_sector(sector)

            chunks.append(chunk)
            gathered += len(chunk)
            sector = table[sector]

            if size > 0 and gathered >= size: break

        data = b''.join(chunks)
        return data[:size] if size > 0 else data

    def read_entry(self, record: DirRecord) -> bytes:
        # Storages have no payload, the Root Entry payload is the mini stream itself
        if not record.is_stream or record.size == 0: return b''
        mini = record.size < self.ctx.header.mini_cutoff_size
        data = self.materialize(record.sector_start, record.size, mini)
        if len(data) < record.size:
            log.warning('Stream %r truncated: %d of %d bytes', record.decoded_name, len(data), record.size)
        return data
