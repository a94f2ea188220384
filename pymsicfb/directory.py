import logging
from typing import Iterator, Optional

from pymsicfb.constants import *
from pymsicfb.context import CFBContext
from pymsicfb.enums import Sector
from pymsicfb.errors import CFBStructureError
from pymsicfb.types import DirEntry, DirNode, DirRecord
from pymsicfb.util import decode_msi_name

log = logging.getLogger(__name__)

class CFBDirectoryMgr:
    def __init__(
        self,
        ctx: CFBContext
    ):
        self.ctx = ctx

    def load(self):
        # The directory size is only implied by its sector chain
        data = self.ctx.stream_mgr.materialize(self.ctx.header.sector_start_directory, 0)
        if len(data) < SIZE_DIRECTORY_ENTRY_BYTES:
            raise CFBStructureError('Failed to read Directory stream')

        count = len(data) // SIZE_DIRECTORY_ENTRY_BYTES
        for i in range(count):
            entry = DirEntry.from_buffer_copy(data, i * SIZE_DIRECTORY_ENTRY_BYTES)
            name = self.read_name(entry)
            self.ctx.directory.append(DirRecord(id=i, entry=entry, name=name, decoded_name=decode_msi_name(name)))
        log.debug('Directory holds %d entries', count)

    @staticmethod
    def read_name(entry: DirEntry) -> str:
        char_count = min(entry.name_len_bytes // 2, SIZE_NAME_CHARS)
        if char_count > 0: char_count -= 1 # Strip null terminator
        return ''.join(chr(c) for c in entry.name[:char_count])

    def build_tree(self):
        # Each id is claimed by at most one parent, so cyclic links cannot loop
        visited = {0}
        root = DirNode(self.ctx.directory[0])
        pending = [root]
        while pending:
            parent = pending.pop()
            for child_id in self.sibling_ids(parent.record.entry.child_id, visited):
                node = DirNode(self.ctx.directory[child_id])
                parent.children.append(node)
                if node.record.is_storage: pending.append(node)
        self.ctx.tree = root

    def sibling_ids(self, start: int, visited: set[int]) -> list[int]:
        """
        In-order (left, self, right) walk of one red-black sibling tree.
        Uses an explicit stack so unbalanced or hostile trees cannot exhaust recursion.
        """
        ids: list[int] = []
        stack: list[int] = []
        node = start
        while True:
            # Every link is checked exactly once
            while self._is_live(node, visited):
                visited.add(node)
                stack.append(node)
                node = self.ctx.directory[node].entry.left_sibling_id
            if not stack: break
            node = stack.pop()
            ids.append(node)
            node = self.ctx.directory[node].entry.right_sibling_id
        return ids

    def _is_live(self, node: int, visited: set[int]) -> bool:
        if node == Sector.NOSTREAM: return False
        if node >= len(self.ctx.directory):
            log.warning('Directory id %Xh outside of the directory (%d entries)', node, len(self.ctx.directory))
            return False
        return node not in visited

    def find(self, name: str) -> Optional[DirRecord]:
        for record in self.ctx.directory:
            if record.decoded_name == name: return record
        return None

    def find_containing(self, fragment: str) -> Optional[DirRecord]:
        for record in self.ctx.directory:
            if record.is_stream and fragment in record.decoded_name: return record
        return None

    def walk(self) -> Iterator[tuple[str, DirNode]]:
        # Depth first, children in directory order, paths joined with '/'
        pending = [('', child) for child in reversed(self.ctx.tree.children)]
        while pending:
            prefix, node = pending.pop()
            path = f'{prefix}/{node.name}' if prefix else node.name
            yield path, node
            for child in reversed(node.children):
                pending.append((path, child))

    def find_path(self, path: str) -> Optional[DirNode]:
        node = self.ctx.tree
        for part in filter(None, path.split('/')):
            node = next((c for c in node.children if c.name == part), None)
            if node is None: return None
        return node
