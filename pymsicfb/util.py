from typing import Iterable
import codecs
import logging
import struct

from pymsicfb.constants import *

log = logging.getLogger(__name__)

def decode_msi_name(raw: str) -> str:
    # Each code unit maps to 0, 1 or 2 characters, there is no state between units
    result = []
    for ch in raw:
        val = ord(ch)
        if MSI_NAME_PAIR_START <= val <= MSI_NAME_PAIR_END:
            packed = val - MSI_NAME_PAIR_START
            result.append(MSI_NAME_CHARSET[packed & 0x3F])
            result.append(MSI_NAME_CHARSET[(packed >> 6) & 0x3F])
        elif MSI_NAME_SINGLE_START <= val <= MSI_NAME_SINGLE_END:
            result.append(MSI_NAME_CHARSET[val - MSI_NAME_SINGLE_START])
        elif val == MSI_NAME_TABLE_MARK:
            result.append('!')
        else:
            result.append(ch)
    return ''.join(result)

def long_file_name(raw_name: str) -> str:
    # "SHORT~1.TXT|Long File Name.txt" -> "Long File Name.txt"
    pos = raw_name.find('|')
    if pos != -1 and pos + 1 < len(raw_name):
        return raw_name[pos + 1:]
    return raw_name

def read_uint(data: bytes, offset: int, width: int) -> int:
    return int.from_bytes(data[offset:offset + width], 'little')

def unpack_uint32_array(data: bytes) -> list[int]:
    count = len(data) // SIZE_FAT_ENTRY_BYTES
    return list(struct.unpack_from(f'<{count}I', data))

def codec_name(codepage: int) -> str:
    # Windows code page number -> Python codec, 0 and unknown pages fall back to latin-1
    if codepage == 0: return DEFAULT_CODEPAGE
    try:
        return codecs.lookup(f'cp{codepage}').name
    except LookupError:
        log.debug('Unknown code page %d, using %s', codepage, DEFAULT_CODEPAGE)
        return DEFAULT_CODEPAGE

def filetime_to_unix(filetime: int) -> int:
    seconds = filetime // FILETIME_TICKS_PER_SECOND
    if seconds > FILETIME_UNIX_EPOCH_DIFF:
        return seconds - FILETIME_UNIX_EPOCH_DIFF
    return 0

def merge_sector_runs(sectors: Iterable[int]) -> list[tuple[int, int]]:
    # Sorted (first sector, count) runs of consecutive sector numbers
    runs: list[tuple[int, int]] = []
    for sector in sorted(sectors):
        if runs and sector == runs[-1][0] + runs[-1][1]:
            runs[-1] = (runs[-1][0], runs[-1][1] + 1)
        elif not runs or sector >= runs[-1][0] + runs[-1][1]:
            runs.append((sector, 1))
    return runs

def format_size(value: int) -> str:
    units = ['Bytes', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0
    size = float(value)
    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1
    if unit_index == 0:
        return f'{value} {units[0]}'
    return f'{size:.2f} {units[unit_index]}'
