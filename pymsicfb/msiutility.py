from datetime import datetime, timezone
from typing import Iterator, Optional, Union
import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.difat import CFBDifatMgr
from pymsicfb.directory import CFBDirectoryMgr
from pymsicfb.fat import CFBFatMgr
from pymsicfb.header import CFBHeaderMgr, is_cfb
from pymsicfb.manifest import MSIManifestMgr
from pymsicfb.minifat import CFBMinifatMgr
from pymsicfb.ministream import CFBMinistreamMgr
from pymsicfb.schema import MSISchemaMgr
from pymsicfb.stream import CFBStreamMgr
from pymsicfb.stringpool import MSIStringPoolMgr
from pymsicfb.summary import CFBSummaryMgr
from pymsicfb.table import MSITableMgr
from pymsicfb.types import *
from pymsicfb.util import format_size
from pymsicfb.zones import CFBZoneMgr

log = logging.getLogger(__name__)

class MSIReader:
    def __init__(
        self,
        data: bytes,
        path_separator: str = PATH_SEPARATOR,
        orphan_label: str = ORPHANED_DIRECTORY
    ):
        self.ctx = CFBContext(data, path_separator, orphan_label)
        self.ctx.header_mgr = CFBHeaderMgr(self.ctx)
        self.ctx.difat_mgr = CFBDifatMgr(self.ctx)
        self.ctx.fat_mgr = CFBFatMgr(self.ctx)
        self.ctx.stream_mgr = CFBStreamMgr(self.ctx)
        self.ctx.directory_mgr = CFBDirectoryMgr(self.ctx)
        self.ctx.minifat_mgr = CFBMinifatMgr(self.ctx)
        self.ctx.ministream_mgr = CFBMinistreamMgr(self.ctx)
        self.ctx.summary_mgr = CFBSummaryMgr(self.ctx)
        self.ctx.stringpool_mgr = MSIStringPoolMgr(self.ctx)
        self.ctx.schema_mgr = MSISchemaMgr(self.ctx)
        self.ctx.table_mgr = MSITableMgr(self.ctx)
        self.ctx.manifest_mgr = MSIManifestMgr(self.ctx)
        self.ctx.zone_mgr = CFBZoneMgr(self.ctx)

        ###########################################################################
        # Compound file structure
        ###########################################################################
        self.ctx.header_mgr.load()
        self.ctx.difat_mgr.load()
        self.ctx.fat_mgr.load()
        self.ctx.directory_mgr.load()
        self.ctx.minifat_mgr.load()
        self.ctx.ministream_mgr.load()
        self.ctx.directory_mgr.build_tree()
        self.ctx.summary_mgr.load()

        ###########################################################################
        # Installer database
        ###########################################################################
        if self.ctx.stringpool_mgr.load():
            self.ctx.schema_mgr.load()
            self.ctx.table_mgr.load()
            self.ctx.manifest_mgr.load()

        self.ctx.zone_mgr.load()

    @classmethod
    def from_file(cls, path: str, **kwargs) -> 'MSIReader':
        with open(path, 'rb') as f:
            return cls(f.read(), **kwargs)

    @staticmethod
    def validate(data: bytes) -> bool:
        return is_cfb(data)

    @property
    def sector_size(self) -> int:
        return self.ctx.sector_size_bytes

    @property
    def minisector_size(self) -> int:
        return self.ctx.minisector_size_bytes

    @property
    def metadata(self) -> SummaryInfo:
        return self.ctx.metadata

    @property
    def directory(self) -> list[DirRecord]:
        return self.ctx.directory

    @property
    def tree(self) -> DirNode:
        return self.ctx.tree

    @property
    def strings(self) -> list[str]:
        return self.ctx.strings

    @property
    def tables(self) -> list[TableInfo]:
        return self.ctx.table_list

    @property
    def files(self) -> list[FileEntry]:
        return self.ctx.files

    @property
    def zones(self) -> list[Zone]:
        return self.ctx.zones

    def walk(self) -> Iterator[tuple[str, DirNode]]:
        return self.ctx.directory_mgr.walk()

    def open_stream(self, target: Union[str, DirNode, DirRecord]) -> bytes:
        if isinstance(target, str):
            node = self.ctx.directory_mgr.find_path(target)
            if node is None: raise KeyError(target)
            target = node
        if isinstance(target, DirNode):
            target = target.record
        return self.ctx.stream_mgr.read_entry(target)

    def table_definition(self, name: str) -> Optional[TableDef]:
        return self.ctx.schema_mgr.get(name)

    def read_table(self, name: str) -> list[list[str]]:
        return self.ctx.table_mgr.read(name)

    def read_table_dicts(self, name: str) -> list[dict[str, str]]:
        return self.ctx.table_mgr.read_dicts(name)

    def offset_to_sector(self, offset: int) -> int:
        return self.ctx.get_sector_number(offset)

    def sector_to_offset(self, sector_number: int) -> int:
        return self.ctx.get_sector_offset(sector_number)

    def information(self) -> list[tuple[str, str, str]]:
        meta = self.ctx.metadata
        rows: list[tuple[str, str, str]] = []

        def add(category: str, field: str, value):
            if value: rows.append((category, field, str(value)))

        def timestamp(value: int) -> str:
            if value == 0: return ''
            try:
                return datetime.fromtimestamp(value, timezone.utc).strftime('%Y-%m-%d %H:%M:%S')
            except (ValueError, OverflowError, OSError):
                log.warning('Timestamp %d outside of the supported date range', value)
                return ''

        add('Summary Information', 'Title', meta.title)
        add('Summary Information', 'Subject', meta.subject)
        add('Summary Information', 'Author', meta.author)
        add('Summary Information', 'Keywords', meta.keywords)
        add('Summary Information', 'Comments', meta.comments)
        add('Summary Information', 'Template', meta.template)
        add('Summary Information', 'Revision (UUID)', meta.revision_number)
        add('Summary Information', 'Creating App', meta.creating_app)
        add('Summary Information', 'Last Saved By', meta.last_saved_by)
        add('Summary Information', 'Created', timestamp(meta.create_time))
        add('Summary Information', 'Last Saved', timestamp(meta.last_save_time))
        add('Summary Information', 'Last Printed', timestamp(meta.last_printed_time))

        add('Statistics', 'Pages', meta.page_count)
        add('Statistics', 'Words', meta.word_count)
        add('Statistics', 'Characters', meta.character_count)
        add('Statistics', 'Tables', len(self.ctx.table_list))
        add('Statistics', 'Files', len(self.ctx.files))

        add('File Details', 'Total Size', format_size(meta.total_size))
        add('File Details', 'Sector Size', f'{self.ctx.sector_size_bytes} bytes')
        add('File Details', 'Mini Sector Size', f'{self.ctx.minisector_size_bytes} bytes')
        add('File Details', 'Streams', sum(1 for r in self.ctx.directory if r.is_stream))
        return rows
