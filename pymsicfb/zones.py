import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import Sector
from pymsicfb.types import Zone
from pymsicfb.util import merge_sector_runs

log = logging.getLogger(__name__)

class CFBZoneMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        zones = [Zone(offset=0, size=SIZE_HEADER_BYTES, label=ZONE_HEADER)]
        zones.extend(self.sector_zones(self.fat_sectors(), ZONE_FAT))
        zones.extend(self.sector_zones(self.directory_sectors(), ZONE_DIRECTORY))
        self.ctx.zones = zones

    def fat_sectors(self) -> list[int]:
        # Only the FAT sectors listed in the header
        return [s for s in self.ctx.header.sector_data_difat if s < Sector.MAXREGSECT]

    def directory_sectors(self) -> list[int]:
        sectors: list[int] = []
        seen: set[int] = set()
        sector = self.ctx.header.sector_start_directory
        while sector < len(self.ctx.fat) and sector not in seen:
            seen.add(sector)
            sectors.append(sector)
            sector = self.ctx.fat[sector]
        return sectors

    def sector_zones(self, sectors: list[int], label: str) -> list[Zone]:
        return [
            Zone(
                offset=self.ctx.get_sector_offset(start),
                size=count * self.ctx.sector_size_bytes,
                label=label,
                sector=start
            )
            for start, count in merge_sector_runs(sectors)
        ]
