from pymsicfb.errors import CFBError, CFBStructureError
from pymsicfb.header import is_cfb
from pymsicfb.msiutility import MSIReader
from pymsicfb.util import decode_msi_name
