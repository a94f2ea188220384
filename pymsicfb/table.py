import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import ColumnType, StringWidth
from pymsicfb.types import TableDef, TableInfo
from pymsicfb.util import read_uint

log = logging.getLogger(__name__)

def decode_rows(table: TableDef, raw: bytes, strings: list[str], string_width: StringWidth) -> list[list[str]]:
    if table.row_size == 0: return []
    num_rows = len(raw) // table.row_size

    # Each column is a contiguous block of num_rows values, blocks follow column order
    starts: list[int] = []
    offset = 0
    for column in table.columns:
        starts.append(offset)
        offset += column.size * num_rows

    rows: list[list[str]] = []
    for i in range(num_rows):
        row: list[str] = []
        for column, start in zip(table.columns, starts):
            value_offset = start + (i * column.size)
            if value_offset + column.size > len(raw):
                row.append(CELL_CORRUPT)
            elif column.size == 0:
                row.append('')
            elif column.type == ColumnType.INTEGER:
                value = read_uint(raw, value_offset, column.size)
                value &= MSI_INT2_MASK if column.size == 2 else MSI_INT4_MASK
                row.append(str(value))
            else:
                index = read_uint(raw, value_offset, string_width)
                row.append(strings[index] if index < len(strings) else '')
        rows.append(row)
    return rows

class MSITableMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        self.ctx.table_list = []
        for name, table in self.ctx.tables.items():
            record = self.ctx.directory_mgr.find(MSI_TABLE_PREFIX + name)
            count = 0
            if record is not None and table.row_size > 0:
                count = record.size // table.row_size
            self.ctx.table_list.append(TableInfo(name=name, row_count=count))

    def read(self, name: str) -> list[list[str]]:
        table = self.ctx.tables.get(name)
        if table is None: return []
        record = self.ctx.directory_mgr.find(MSI_TABLE_PREFIX + name)
        if record is None:
            log.debug('Table %s has no stream', name)
            return []
        raw = self.ctx.stream_mgr.read_entry(record)
        return decode_rows(table, raw, self.ctx.strings, self.ctx.string_width)

    def read_dicts(self, name: str) -> list[dict[str, str]]:
        table = self.ctx.tables.get(name)
        if table is None: return []
        return [
            {column.name: value for column, value in zip(table.columns, row) if column.name}
            for row in self.read(name)
        ]
