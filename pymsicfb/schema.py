import logging
from typing import Optional

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import ColumnType, StringWidth
from pymsicfb.types import ColumnDef, TableDef
from pymsicfb.util import read_uint

log = logging.getLogger(__name__)

def detect_string_width(columns_size: int, pool_count: int) -> StringWidth:
    # _Columns rows are 8 bytes with 2 byte string refs and 10 bytes with 3 byte refs
    by_ten = columns_size % 10 == 0
    by_eight = columns_size % 8 == 0
    if by_ten and not by_eight: return StringWidth.LONG
    if by_eight and not by_ten: return StringWidth.SHORT
    width = StringWidth.LONG if pool_count > MSI_LARGE_POOL else StringWidth.SHORT
    log.debug('_Columns size %d is ambiguous, %d strings in pool -> %d byte string refs', columns_size, pool_count, width)
    return width

def parse_column_type(name: str, packed: int) -> ColumnDef:
    packed &= ~MSITYPE_UNKNOWN
    column = ColumnDef(
        name=name,
        declared_size=packed & MSITYPE_DATASIZEMASK,
        nullable=bool(packed & MSITYPE_NULLABLE),
        key=bool(packed & MSITYPE_KEY),
        localizable=bool(packed & MSITYPE_LOCALIZABLE)
    )
    if packed & MSITYPE_STRING:
        column.type = ColumnType.STRING
    else:
        column.type = ColumnType.INTEGER
        column.int_size = 2 if (packed & 0x0F) == MSITYPE_INT2_NIBBLE else 4
    return column

def decode_columns(raw: bytes, strings: list[str], width: StringWidth) -> dict[str, TableDef]:
    def get_string(index: int) -> str:
        return strings[index] if index < len(strings) else ''

    tables: dict[str, TableDef] = {}
    row_size = (width * 2) + 4
    num_rows = len(raw) // row_size

    # Column oriented: every table name, then every ordinal, then every column name, then every type
    start_table = 0
    start_num = start_table + (num_rows * width)
    start_name = start_num + (num_rows * 2)
    start_type = start_name + (num_rows * width)

    for i in range(num_rows):
        table_name = get_string(read_uint(raw, start_table + i * width, width))
        ordinal = read_uint(raw, start_num + i * 2, 2) & 0x7FFF
        column_name = get_string(read_uint(raw, start_name + i * width, width))
        packed = read_uint(raw, start_type + i * 2, 2)

        if not table_name or table_name == STRING_ERROR: continue
        if ordinal == 0 or ordinal > MSI_MAX_COLUMNS: continue

        table = tables.setdefault(table_name, TableDef(name=table_name))
        while len(table.columns) < ordinal:
            table.columns.append(ColumnDef())
        table.columns[ordinal - 1] = parse_column_type(column_name, packed)

    # Widths are only known once every row has been seen
    for table in tables.values():
        for column in table.columns:
            column.size = width if column.type == ColumnType.STRING else column.int_size
        table.row_size = sum(c.size for c in table.columns)

    return tables

class MSISchemaMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        record = self.ctx.directory_mgr.find(MSI_STREAM_COLUMNS)
        if record is None or record.size == 0:
            log.warning('No _Columns stream, database has no tables')
            self.ctx.string_width = StringWidth.SHORT
            self.ctx.tables = {}
            return

        self.ctx.string_width = detect_string_width(record.size, len(self.ctx.strings))
        raw = self.ctx.stream_mgr.read_entry(record)
        self.ctx.tables = decode_columns(raw, self.ctx.strings, self.ctx.string_width)
        log.debug('Schema: %d tables, %d byte string refs', len(self.ctx.tables), self.ctx.string_width)

    def get(self, name: str) -> Optional[TableDef]:
        return self.ctx.tables.get(name)
