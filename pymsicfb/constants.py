# Header Constants
HEADER_SIGNATURE = 0xE11AB1A1E011CFD0                   # OLE2 file signature
HEADER_SIGNATURE_BYTES = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'
HEADER_BYTE_ORDER = 0xFFFE                              # Little Endian byte-order mark
HEADER_DIFAT_COUNT = 109                                # The first 109 entries of DIFAT are always in the header

# Sizes and byte shifts
SHIFT_MINISECTOR_BITS = 0x0006
SIZE_DIFAT_ENTRY_BYTES = 4
SIZE_DIRECTORY_ENTRY_BYTES = 128
SIZE_FAT_ENTRY_BYTES = 4
SIZE_HEADER_BYTES = 512
SIZE_SECTOR_BYTES_V3 = 512
SIZE_SECTOR_BYTES_V4 = 4096
SIZE_NAME_CHARS = 32

# Traversal limits, guard against cyclic or hostile chains
MAX_DIFAT_CHAIN = 10000                # DIFAT sectors followed before giving up
MAX_UNBOUNDED_SECTORS = 20000          # Sector steps when the stream size is unknown
MAX_SECTOR_SLACK = 100                 # Extra steps allowed beyond size // sector_size

# Name compression
MSI_NAME_CHARSET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz._'
MSI_NAME_PAIR_START = 0x3800
MSI_NAME_PAIR_END = 0x47FF
MSI_NAME_SINGLE_START = 0x4800
MSI_NAME_SINGLE_END = 0x483F
MSI_NAME_TABLE_MARK = 0x4840           # Decodes to '!', prefix of every table stream

# Property set (SummaryInformation)
SUMMARY_STREAM_FRAGMENT = 'SummaryInformation'
SUMMARY_SECTION_OFFSET = 44            # Offset of the first section offset in the preamble
SIZE_SUMMARY_PREAMBLE_BYTES = 48
FILETIME_TICKS_PER_SECOND = 10000000
FILETIME_UNIX_EPOCH_DIFF = 11644473600 # Seconds between 1601-01-01 and 1970-01-01

# MSI database streams
MSI_STREAM_STRINGPOOL = '!_StringPool'
MSI_STREAM_STRINGDATA = '!_StringData'
MSI_STREAM_COLUMNS = '!_Columns'
MSI_TABLE_PREFIX = '!'

# MSI column type bits (packed type word in _Columns)
MSITYPE_DATASIZEMASK = 0x00FF
MSITYPE_LOCALIZABLE = 0x0200
MSITYPE_STRING = 0x0800
MSITYPE_NULLABLE = 0x1000
MSITYPE_KEY = 0x2000
MSITYPE_UNKNOWN = 0x8000              # Set on every persisted type word
MSITYPE_INT2_NIBBLE = 0x2
MSI_MAX_COLUMNS = 255
MSI_LARGE_POOL = 65536                 # Pools above this size suggest 3 byte string refs
MSI_INT2_MASK = 0x7FFF
MSI_INT4_MASK = 0x7FFFFFFF

# Placeholders
STRING_ERROR = '<Error>'
CELL_CORRUPT = '<Corrupt>'
ORPHANED_DIRECTORY = '<Orphaned>'
PATH_SEPARATOR = '\\'
DEFAULT_CODEPAGE = 'latin-1'

# Manifest tables
MSI_TABLE_FILE = 'File'
MSI_TABLE_COMPONENT = 'Component'
MSI_TABLE_DIRECTORY = 'Directory'

# Zone labels
ZONE_HEADER = 'Header'
ZONE_FAT = 'FAT Sector'
ZONE_DIRECTORY = 'Directory Sector'
