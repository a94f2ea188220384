class CFBError(Exception):
    pass

class CFBStructureError(CFBError):
    """The container cannot be read at all (bad signature, no FAT, no directory)."""
    pass
