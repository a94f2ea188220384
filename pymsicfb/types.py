from dataclasses import dataclass, field
from typing import Optional
import ctypes

from pymsicfb import enums
from pymsicfb.constants import *

class Header(ctypes.LittleEndianStructure):
    _pack_ = 1
    _layout_ = 'ms'
    _fields_ = [
        ('signature', ctypes.c_uint64),                 # 8 byte
        ('clsid', ctypes.c_ubyte * 16),                 # 16 byte
        ('version_minor', ctypes.c_uint16),             # 2 byte, 0x003E if major version is 0x0003 or 0x0004
        ('version_major', ctypes.c_uint16),             # 2 byte, 0x0003 or 0x0004
        ('byte_order', ctypes.c_uint16),                # 2 byte
        ('sector_shift', ctypes.c_uint16),              # 2 byte
        ('mini_sector_shift', ctypes.c_uint16),         # 2 byte
        ('reserved', ctypes.c_ubyte * 6),               # 6 byte
        ('sector_count_directory', ctypes.c_uint32),    # 4 byte, always 0 in v3.
        ('sector_count_fat', ctypes.c_uint32),          # 4 byte
        ('sector_start_directory', ctypes.c_uint32),    # 4 byte
        ('transaction_signature', ctypes.c_uint32),     # 4 byte
        ('mini_cutoff_size', ctypes.c_uint32),          # 4 byte
        ('sector_start_minifat', ctypes.c_uint32),      # 4 byte
        ('sector_count_minifat', ctypes.c_uint32),      # 4 byte
        ('sector_start_difat', ctypes.c_uint32),        # 4 byte
        ('sector_count_difat', ctypes.c_uint32),        # 4 byte
        ('sector_data_difat', ctypes.c_uint32 * HEADER_DIFAT_COUNT), # 4 byte x 109 in header, extendable via other sectors
    ]

class DirEntry(ctypes.LittleEndianStructure):
    _pack_ = 1
    _layout_ = 'ms'
    _fields_ = [
        ('name', ctypes.c_uint16 * SIZE_NAME_CHARS),    # 64 byte, UTF-16 LE (null terminated)
        ('name_len_bytes', ctypes.c_uint16),            # 2 byte
        ('object_type', ctypes.c_uint8),                # 1 byte
        ('color_flag', ctypes.c_uint8),                 # 1 byte
        ('left_sibling_id', ctypes.c_uint32),           # 4 byte
        ('right_sibling_id', ctypes.c_uint32),          # 4 byte
        ('child_id', ctypes.c_uint32),                  # 4 byte
        ('clsid', ctypes.c_ubyte * 16),                 # 16 byte
        ('state', ctypes.c_uint32),                     # 4 byte
        ('time_created', ctypes.c_uint64),              # 8 byte, Windows FILETIME in UTC
        ('time_modified', ctypes.c_uint64),             # 8 byte, Windows FILETIME in UTC
        ('sector_start', ctypes.c_uint32),              # 4 byte
        ('size_bytes', ctypes.c_uint64),                # 8 byte
    ]

@dataclass
class DirRecord:
    id: int                                     # Position in the flat directory array
    entry: DirEntry = field(repr=False)
    name: str                                   # Raw name, code units as stored
    decoded_name: str                           # Name after MSI name decompression

    @property
    def type(self) -> int:
        return self.entry.object_type

    @property
    def size(self) -> int:
        return self.entry.size_bytes

    @property
    def sector_start(self) -> int:
        return self.entry.sector_start

    @property
    def is_storage(self) -> bool:
        return self.entry.object_type in (enums.DirType.STORAGE, enums.DirType.ROOTSTORAGE)

    @property
    def is_stream(self) -> bool:
        return self.entry.object_type == enums.DirType.STREAM

@dataclass
class DirNode:
    record: DirRecord
    children: list['DirNode'] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.record.decoded_name

@dataclass
class SummaryInfo:
    title: str = ''
    subject: str = ''
    author: str = ''
    keywords: str = ''
    comments: str = ''
    template: str = ''
    last_saved_by: str = ''
    revision_number: str = ''
    creating_app: str = ''
    codepage: int = 0
    create_time: int = 0                # Unix timestamp, 0 if unknown
    last_save_time: int = 0
    last_printed_time: int = 0
    page_count: int = 0
    word_count: int = 0
    character_count: int = 0
    security: int = 0
    total_size: int = 0

@dataclass
class ColumnDef:
    name: str = ''
    type: enums.ColumnType = enums.ColumnType.INTEGER
    size: int = 0                       # Byte width on disk, set once the schema is complete
    int_size: int = 0                   # 2 or 4 for integer columns
    declared_size: int = 0              # Size field of the packed type (max string length or int width)
    nullable: bool = False
    key: bool = False
    localizable: bool = False

@dataclass
class TableDef:
    name: str
    columns: list[ColumnDef] = field(default_factory=list)
    row_size: int = 0

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

@dataclass(frozen=True)
class TableInfo:
    name: str
    row_count: int

@dataclass(frozen=True)
class FileEntry:
    name: str
    directory: str
    component: str
    size: int = 0
    version: str = ''

@dataclass(frozen=True)
class Zone:
    offset: int
    size: int
    label: str
    sector: Optional[int] = None        # First sector of the run, None for the header
