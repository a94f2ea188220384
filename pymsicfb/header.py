import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.errors import CFBStructureError
from pymsicfb.types import Header

log = logging.getLogger(__name__)

def is_cfb(data: bytes) -> bool:
    # Cheap check used to claim a file before a full load
    if len(data) < SIZE_HEADER_BYTES: return False
    if bytes(data[:8]) != HEADER_SIGNATURE_BYTES: return False
    header = Header.from_buffer_copy(bytes(data[:SIZE_HEADER_BYTES]))
    return SIZE_SECTOR_BYTES_V3 <= (1 << header.sector_shift) <= SIZE_SECTOR_BYTES_V4

class CFBHeaderMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        if len(self.ctx.data) < SIZE_HEADER_BYTES:
            raise CFBStructureError(f'File too small for a compound file header: {len(self.ctx.data)} bytes')

        header = Header.from_buffer_copy(self.ctx.data[:SIZE_HEADER_BYTES])
        if header.signature != HEADER_SIGNATURE:
            raise CFBStructureError(f'Invalid signature {self.ctx.data[:8].hex()}')

        sector_size = 1 << header.sector_shift
        if not (SIZE_SECTOR_BYTES_V3 <= sector_size <= SIZE_SECTOR_BYTES_V4):
            raise CFBStructureError(f'Unsupported sector shift {header.sector_shift}')

        if header.byte_order != HEADER_BYTE_ORDER:
            log.warning('Byte order mark is %04Xh instead of %04Xh', header.byte_order, HEADER_BYTE_ORDER)
        if header.mini_sector_shift != SHIFT_MINISECTOR_BITS:
            log.warning('Mini sector shift is %d instead of %d', header.mini_sector_shift, SHIFT_MINISECTOR_BITS)

        self.ctx.header = header
        self.ctx.sector_size_bytes = sector_size
        self.ctx.minisector_size_bytes = 1 << header.mini_sector_shift
        self.ctx.fat_entries_per_sector = sector_size // SIZE_FAT_ENTRY_BYTES
        self.ctx.difat_entries_per_sector = (sector_size // SIZE_DIFAT_ENTRY_BYTES) - 1

        log.debug('Sector size = %d bytes, mini sector size = %d bytes',
                  self.ctx.sector_size_bytes, self.ctx.minisector_size_bytes)
        log.debug('FAT sectors = %d, first directory sector = %Xh, first MiniFAT sector = %Xh, first DIFAT sector = %Xh',
                  header.sector_count_fat, header.sector_start_directory,
                  header.sector_start_minifat, header.sector_start_difat)
