from enum import IntEnum

class DirType(IntEnum):
    UNALLOCATED = 0x00
    STORAGE = 0x01
    STREAM = 0x02
    ROOTSTORAGE = 0x05

class Sector(IntEnum):
    MAXREGSECT = 0xFFFFFFFA # Maximum regular sector number
    ENDOFCHAIN = 0xFFFFFFFE # End of Sector Chain
    FREESECT = 0xFFFFFFFF   # Free/Unallocated Sector
    NOSTREAM = 0xFFFFFFFF   # No Stream

class PropertyType(IntEnum):
    I2 = 2          # VT_I2
    I4 = 3          # VT_I4
    LPSTR = 30      # VT_LPSTR
    FILETIME = 64   # VT_FILETIME

class LengthWord(IntEnum):
    # Which 16 bit word of a _StringPool record holds the string length
    LOW = 0
    HIGH = 1

class StringWidth(IntEnum):
    SHORT = 2
    LONG = 3

class ColumnType(IntEnum):
    INTEGER = 0
    STRING = 1
