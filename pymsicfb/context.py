from typing import Optional

from pymsicfb.constants import *
from pymsicfb.enums import *
from pymsicfb.types import *

class CFBContext:
    def __init__(
        self,
        data: bytes,
        path_separator: str = PATH_SEPARATOR,
        orphan_label: str = ORPHANED_DIRECTORY
    ):
        self.data = bytes(data)
        self.path_separator = path_separator
        self.orphan_label = orphan_label

        # Filled in by the header manager
        self.sector_size_bytes = 0
        self.minisector_size_bytes = 0
        self.fat_entries_per_sector = 0
        self.difat_entries_per_sector = 0

        self.header: Optional[Header] = None
        self.header_mgr = None

        self.difat: list[int] = []              # Sector numbers of the FAT sectors
        self.difat_mgr = None

        self.fat: list[int] = []
        self.fat_mgr = None

        self.minifat: list[int] = []
        self.minifat_mgr = None

        self.ministream = b''
        self.ministream_mgr = None

        self.stream_mgr = None

        self.directory: list[DirRecord] = []
        self.tree: Optional[DirNode] = None
        self.directory_mgr = None

        self.metadata = SummaryInfo(total_size=len(self.data))
        self.summary_mgr = None

        self.strings: list[str] = []
        self.codepage = DEFAULT_CODEPAGE
        self.stringpool_mgr = None

        self.string_width = StringWidth.SHORT
        self.tables: dict[str, TableDef] = {}
        self.schema_mgr = None

        self.table_list: list[TableInfo] = []
        self.table_mgr = None

        self.files: list[FileEntry] = []
        self.manifest_mgr = None

        self.zones: list[Zone] = []
        self.zone_mgr = None

    def get_sector_offset(self, sector_number: int) -> int:
        # Logical sector 0 starts right after the header sector
        return (sector_number + 1) * self.sector_size_bytes

    def get_sector_number(self, offset: int) -> int:
        if offset < SIZE_HEADER_BYTES: return 0
        return (offset // self.sector_size_bytes) - 1

    def read_sector(self, sector_number: int) -> bytes:
        offset = self.get_sector_offset(sector_number)
        return self.data[offset : offset + self.sector_size_bytes]
