import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import PropertyType
from pymsicfb.types import SummaryInfo
from pymsicfb.util import codec_name, filetime_to_unix, read_uint

log = logging.getLogger(__name__)

# (property id, value type) -> SummaryInfo field
PROPERTY_FIELDS = {
    (1, PropertyType.I2): 'codepage',
    (2, PropertyType.LPSTR): 'title',
    (3, PropertyType.LPSTR): 'subject',
    (4, PropertyType.LPSTR): 'author',
    (5, PropertyType.LPSTR): 'keywords',
    (6, PropertyType.LPSTR): 'comments',
    (7, PropertyType.LPSTR): 'template',
    (8, PropertyType.LPSTR): 'last_saved_by',
    (9, PropertyType.LPSTR): 'revision_number',
    (11, PropertyType.FILETIME): 'last_printed_time',
    (12, PropertyType.FILETIME): 'create_time',
    (13, PropertyType.FILETIME): 'last_save_time',
    (14, PropertyType.I4): 'page_count',
    (15, PropertyType.I4): 'word_count',
    (16, PropertyType.I4): 'character_count',
    (18, PropertyType.LPSTR): 'creating_app',
    (19, PropertyType.I4): 'security',
}

def parse_lpstr(value: bytes, codec: str = DEFAULT_CODEPAGE) -> str:
    # type (4) + length (4) + bytes, length clamped to what is available
    if len(value) < 8: return ''
    length = min(read_uint(value, 4, 4), len(value) - 8)
    return value[8 : 8 + length].rstrip(b'\x00').decode(codec, errors='replace')

def parse_value(vt: PropertyType, value: bytes, codec: str = DEFAULT_CODEPAGE):
    if vt == PropertyType.LPSTR:
        return parse_lpstr(value, codec)
    elif vt == PropertyType.FILETIME:
        if len(value) < 12: return None
        return filetime_to_unix(read_uint(value, 4, 8))
    elif vt == PropertyType.I2:
        if len(value) < 6: return None
        return read_uint(value, 4, 2)
    elif vt == PropertyType.I4:
        if len(value) < 8: return None
        return read_uint(value, 4, 4)
    return None

def parse_summary_information(data: bytes, info: SummaryInfo) -> SummaryInfo:
    if len(data) < SIZE_SUMMARY_PREAMBLE_BYTES: return info

    # Only the first section is read
    section_offset = read_uint(data, SUMMARY_SECTION_OFFSET, 4)
    if section_offset >= len(data): return info
    section = data[section_offset:]
    if len(section) < 8: return info

    property_count = read_uint(section, 4, 4)
    max_count = (len(section) - 8) // 8
    if property_count > max_count:
        log.warning('Property count %d clamped to %d', property_count, max_count)
        property_count = max_count

    properties: list[tuple[str, PropertyType, bytes]] = []
    for i in range(property_count):
        entry_offset = 8 + i * 8
        prop_id = read_uint(section, entry_offset, 4)
        prop_offset = read_uint(section, entry_offset + 4, 4)
        if prop_offset + 4 > len(section): continue

        value = section[prop_offset:]
        type_tag = read_uint(value, 0, 4) & 0xFFFF
        try:
            vt = PropertyType(type_tag)
        except ValueError:
            continue

        field_name = PROPERTY_FIELDS.get((prop_id, vt))
        if field_name is None: continue
        properties.append((field_name, vt, value))

    # Strings are decoded with the section's code page wherever it appears in the table
    properties.sort(key=lambda p: p[0] != 'codepage')
    codec = DEFAULT_CODEPAGE
    for field_name, vt, value in properties:
        parsed = parse_value(vt, value, codec)
        if parsed is None: continue
        setattr(info, field_name, parsed)
        if field_name == 'codepage': codec = codec_name(parsed)

    return info

class CFBSummaryMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        # Look for "\005SummaryInformation"
        record = self.ctx.directory_mgr.find_containing(SUMMARY_STREAM_FRAGMENT)
        if record is None:
            log.debug('No SummaryInformation stream')
            return
        data = self.ctx.stream_mgr.read_entry(record)
        parse_summary_information(data, self.ctx.metadata)
        log.debug('Summary information: title=%r author=%r', self.ctx.metadata.title, self.ctx.metadata.author)
