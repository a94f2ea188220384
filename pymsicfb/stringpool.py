import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import LengthWord
from pymsicfb.util import codec_name, read_uint

log = logging.getLogger(__name__)

def _length(pool: bytes, index: int, word: LengthWord) -> int:
    return read_uint(pool, index * 4 + word * 2, 2)

def detect_length_word(pool: bytes, data_size: int) -> LengthWord:
    """
    Works out which 16 bit word of each _StringPool record holds the string length.
    A convention is valid when its lengths add up to exactly the _StringData size.
    The low word is only chosen when it is valid and the high word is not.
    """
    count = len(pool) // 4

    def valid(word: LengthWord) -> bool:
        total = 0
        for i in range(1, count):
            total += _length(pool, i, word)
            if total > data_size: return False
        return total == data_size

    high_valid = valid(LengthWord.HIGH)
    low_valid = valid(LengthWord.LOW)
    if low_valid and not high_valid:
        return LengthWord.LOW
    if high_valid == low_valid:
        log.debug('String length convention ambiguous (both valid: %s), using high word', high_valid)
    return LengthWord.HIGH

def detect_codepage(pool: bytes) -> str:
    # Record 0 carries the database code page, the top bit flags long string references
    return codec_name(read_uint(pool, 0, 4) & 0x7FFFFFFF)

def decode_string_pool(pool: bytes, data: bytes, word: LengthWord, codepage: str = DEFAULT_CODEPAGE) -> list[str]:
    count = len(pool) // 4
    if count == 0: return []

    # Index 0 is always null/empty in MSI pools
    strings = ['']
    offset = 0
    for i in range(1, count):
        length = _length(pool, i, word)
        if offset + length > len(data):
            log.warning('String %d overruns _StringData (%d + %d > %d), pool truncated', i, offset, length, len(data))
            strings.append(STRING_ERROR)
            break
        strings.append(data[offset : offset + length].rstrip(b'\x00').decode(codepage, errors='replace'))
        offset += length
    return strings

class MSIStringPoolMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self) -> bool:
        pool_entry = self.ctx.directory_mgr.find(MSI_STREAM_STRINGPOOL)
        data_entry = self.ctx.directory_mgr.find(MSI_STREAM_STRINGDATA)
        if pool_entry is None or data_entry is None:
            log.debug('No string pool, not an installer database')
            return False

        pool = self.ctx.stream_mgr.read_entry(pool_entry)
        data = self.ctx.stream_mgr.read_entry(data_entry)

        # Must contain at least one entry or header
        if len(pool) < 4: return False

        word = detect_length_word(pool, len(data))
        self.ctx.codepage = detect_codepage(pool)
        self.ctx.strings = decode_string_pool(pool, data, word, self.ctx.codepage)
        log.debug('String pool: %d strings, %s word lengths, code page %s',
                  len(self.ctx.strings), word.name.lower(), self.ctx.codepage)
        return len(self.ctx.strings) > 0

    def get(self, index: int) -> str:
        if index >= len(self.ctx.strings): return ''
        return self.ctx.strings[index]
