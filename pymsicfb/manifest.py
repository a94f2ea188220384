import logging

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.types import FileEntry
from pymsicfb.util import long_file_name

log = logging.getLogger(__name__)

def join_path(parent: str, name: str, separator: str = PATH_SEPARATOR) -> str:
    if not parent or parent.endswith(separator): return parent + name
    return parent + separator + name

def resolve_path(
    key: str,
    dirs: dict[str, tuple[str, str]],
    cache: dict[str, str],
    separator: str = PATH_SEPARATOR
) -> str:
    """
    Full install path of a Directory table key.
    dirs maps key -> (parent key, default name), cache memoizes resolved keys for one pass.
    A key that is not in the Directory table resolves to itself.
    A directory without a parent, its own parent, or met again while resolving ends the walk with its own name.
    """
    chain: list[str] = []
    current = key
    while True:
        if current in cache:
            path = cache[current]
            break
        if current not in dirs:
            path = current
            break

        parent, name = dirs[current]
        if current in chain:
            # Cycle, drop the part of the chain that belongs to it
            chain = chain[:chain.index(current)]
            path = cache[current] = name
            break
        if not parent or parent == current:
            path = cache[current] = name
            break

        chain.append(current)
        current = parent

    for k in reversed(chain):
        path = cache[k] = join_path(path, dirs[k][1], separator)
    return path

class MSIManifestMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        if MSI_TABLE_FILE not in self.ctx.tables:
            log.debug('No File table, empty manifest')
            return

        dirs: dict[str, tuple[str, str]] = {}
        for row in self.ctx.table_mgr.read(MSI_TABLE_DIRECTORY):
            if len(row) < 3: continue
            if row[0]: dirs[row[0]] = (row[1], long_file_name(row[2]))

        component_dirs: dict[str, str] = {}
        for row in self.ctx.table_mgr.read(MSI_TABLE_COMPONENT):
            if len(row) < 3: continue
            if row[0]: component_dirs[row[0]] = row[2]

        cache: dict[str, str] = {}
        files: list[FileEntry] = []
        for row in self.ctx.table_mgr.read(MSI_TABLE_FILE):
            if len(row) < 5: continue
            try:
                size = int(row[3])
            except ValueError:
                size = 0

            component = row[1]
            if component in component_dirs:
                directory = resolve_path(component_dirs[component], dirs, cache, self.ctx.path_separator)
            else:
                directory = self.ctx.orphan_label

            files.append(FileEntry(
                name=long_file_name(row[2]),
                directory=directory,
                component=component,
                size=size,
                version=row[4]
            ))

        self.ctx.files = files
        log.debug('Manifest: %d files, %d directories resolved', len(files), len(cache))
