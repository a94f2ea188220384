import struct
import unittest

from cfb_builder import CFBBuilder, Entry, ENDOFCHAIN, FREESECT, NOSTREAM
from pymsicfb import CFBStructureError, MSIReader, decode_msi_name, is_cfb
from pymsicfb.constants import MAX_DIFAT_CHAIN, MAX_UNBOUNDED_SECTORS
from pymsicfb.context import CFBContext
from pymsicfb.directory import CFBDirectoryMgr
from pymsicfb.enums import DirType
from pymsicfb.stream import CFBStreamMgr
from pymsicfb.types import DirEntry, DirRecord, Header, Zone
from pymsicfb.zones import CFBZoneMgr

def make_context(sectors: list[bytes], fat: list[int]) -> CFBContext:
    ctx = CFBContext(b'\x00' * 512 + b''.join(sectors))
    ctx.sector_size_bytes = 512
    ctx.minisector_size_bytes = 64
    ctx.fat = fat
    return ctx

def make_record(id: int, name: str, object_type: int, left=NOSTREAM, right=NOSTREAM, child=NOSTREAM) -> DirRecord:
    entry = DirEntry()
    entry.object_type = object_type
    entry.left_sibling_id = left
    entry.right_sibling_id = right
    entry.child_id = child
    return DirRecord(id=id, entry=entry, name=name, decoded_name=decode_msi_name(name))

class FixedStream:
    def __init__(self, data: bytes):
        self.data = data

    def materialize(self, start_sector: int, size: int, mini: bool = False) -> bytes:
        return self.data

class HeaderTests(unittest.TestCase):
    def setUp(self):
        cfb = CFBBuilder()
        cfb.add_stream('hello', b'hello world')
        self.data = cfb.build()

    def test_sector_sizes(self):
        reader = MSIReader(self.data)
        self.assertEqual(reader.sector_size, 512)
        self.assertEqual(reader.minisector_size, 64)

    def test_bad_signature(self):
        data = b'\x00' * 8 + self.data[8:]
        with self.assertRaises(CFBStructureError):
            MSIReader(data)
        self.assertFalse(is_cfb(data))

    def test_short_file(self):
        with self.assertRaises(CFBStructureError):
            MSIReader(self.data[:100])
        self.assertFalse(is_cfb(self.data[:100]))

    def test_bad_sector_shift(self):
        data = self.data[:30] + struct.pack('<H', 8) + self.data[32:]
        with self.assertRaises(CFBStructureError):
            MSIReader(data)
        self.assertFalse(is_cfb(data))

    def test_validate(self):
        self.assertTrue(is_cfb(self.data))
        self.assertTrue(MSIReader.validate(self.data))

    def test_header_layout(self):
        header = Header.from_buffer_copy(self.data[:512])
        self.assertEqual(header.sector_shift, 9)
        self.assertEqual(header.mini_cutoff_size, 4096)
        self.assertEqual(header.sector_data_difat[1], 0xFFFFFFFF)

class StreamTests(unittest.TestCase):
    def test_regular_chain(self):
        ctx = make_context([b'A' * 512, b'B' * 512, b'C' * 512], [2, ENDOFCHAIN, 1])
        data = CFBStreamMgr(ctx).materialize(0, 1300)
        self.assertEqual(len(data), 1300)
        self.assertEqual(data, b'A' * 512 + b'C' * 512 + b'B' * 276)

    def test_unbounded_reads_to_end_of_chain(self):
        ctx = make_context([b'A' * 512, b'B' * 512], [1, ENDOFCHAIN])
        self.assertEqual(CFBStreamMgr(ctx).materialize(0, 0), b'A' * 512 + b'B' * 512)

    def test_short_chain_gives_partial_data(self):
        ctx = make_context([b'A' * 512], [ENDOFCHAIN])
        data = CFBStreamMgr(ctx).materialize(0, 2000)
        self.assertEqual(data, b'A' * 512)
        self.assertLessEqual(len(data), 2000)

    def test_sector_outside_fat(self):
        ctx = make_context([b'A' * 512], [7])
        self.assertEqual(CFBStreamMgr(ctx).materialize(0, 0), b'A' * 512)
        self.assertEqual(CFBStreamMgr(ctx).materialize(9, 0), b'')

    def test_cyclic_chain_with_size(self):
        ctx = make_context([b'A' * 512, b'B' * 512], [1, 0])
        data = CFBStreamMgr(ctx).materialize(0, 2048)
        self.assertEqual(data, (b'A' * 512 + b'B' * 512) * 2)

    def test_cyclic_chain_without_size_is_bounded(self):
        ctx = make_context([b'A' * 512, b'B' * 512], [1, 0])
        data = CFBStreamMgr(ctx).materialize(0, 0)
        self.assertEqual(len(data), 512 * MAX_UNBOUNDED_SECTORS)

    def test_mini_chain(self):
        ctx = make_context([], [])
        ctx.ministream = bytes([1]) * 64 + bytes([2]) * 64 + bytes([3]) * 64
        ctx.minifat = [2, ENDOFCHAIN, 1]
        data = CFBStreamMgr(ctx).materialize(0, 100, mini=True)
        self.assertEqual(data, bytes([1]) * 64 + bytes([3]) * 36)

    def test_mini_sector_past_ministream(self):
        ctx = make_context([], [])
        ctx.ministream = bytes([1]) * 64
        ctx.minifat = [1, ENDOFCHAIN]
        self.assertEqual(CFBStreamMgr(ctx).materialize(0, 128, mini=True), bytes([1]) * 64)

    def test_regular_and_mini_streams(self):
        big = bytes(range(256)) * 40
        small = b'small stream payload'
        cfb = CFBBuilder()
        cfb.add_stream('big', big)
        cfb.add_stream('small', small)
        cfb.add_stream('empty', b'')
        reader = MSIReader(cfb.build())
        self.assertEqual(reader.open_stream('big'), big)
        self.assertEqual(reader.open_stream('small'), small)
        self.assertEqual(reader.open_stream('empty'), b'')

    def test_cutoff_boundary(self):
        exact = b'x' * 4096
        under = b'y' * 4095
        cfb = CFBBuilder()
        cfb.add_stream('exact', exact)
        cfb.add_stream('under', under)
        reader = MSIReader(cfb.build())
        self.assertEqual(reader.open_stream('exact'), exact)
        self.assertEqual(reader.open_stream('under'), under)

    def test_difat_overflow(self):
        big = bytes(range(256)) * 320
        cfb = CFBBuilder(header_fat_slots=1)
        cfb.add_stream('big', big)
        data = cfb.build()
        self.assertEqual(len(cfb.difat_sectors), 1)
        self.assertEqual(len(cfb.fat_sectors), 2)

        reader = MSIReader(data)
        self.assertEqual(reader.ctx.difat, cfb.fat_sectors)
        self.assertEqual(reader.open_stream('big'), big)

    def test_difat_chain_pointing_to_itself(self):
        big = bytes(range(256)) * 320
        cfb = CFBBuilder(header_fat_slots=1)
        cfb.add_stream('big', big)
        data = bytearray(cfb.build())
        difat_sector = cfb.difat_sectors[0]
        struct.pack_into('<I', data, (difat_sector + 1) * 512 + 508, difat_sector)

        with self.assertLogs('pymsicfb.difat', level='WARNING'):
            reader = MSIReader(bytes(data))
        self.assertEqual(len(reader.ctx.difat), 1 + MAX_DIFAT_CHAIN)
        self.assertEqual(reader.ctx.difat[:2], cfb.fat_sectors)
        self.assertEqual(reader.open_stream('big'), big)

    def test_4096_byte_sectors(self):
        big = b'\xAB' * 9000
        small = b'tiny'
        cfb = CFBBuilder(sector_shift=12)
        cfb.add_stream('big', big)
        cfb.add_stream('small', small)
        reader = MSIReader(cfb.build())
        self.assertEqual(reader.sector_size, 4096)
        self.assertEqual(reader.open_stream('big'), big)
        self.assertEqual(reader.open_stream('small'), small)

class DirectoryTests(unittest.TestCase):
    def test_directory_of_two_entries(self):
        builder = CFBBuilder()
        root = Entry('Root Entry', 5)
        root.child = 1
        stream = Entry('A', 2, b'')
        raw = builder._dir_entry(root) + builder._dir_entry(stream)
        self.assertEqual(len(raw), 256)

        ctx = CFBContext(b'')
        ctx.header = Header()
        ctx.stream_mgr = FixedStream(raw)
        mgr = CFBDirectoryMgr(ctx)
        mgr.load()
        self.assertEqual(len(ctx.directory), 2)
        self.assertEqual(ctx.directory[0].name, 'Root Entry')
        self.assertEqual(ctx.directory[1].name, 'A')

    def test_empty_directory(self):
        ctx = CFBContext(b'')
        ctx.header = Header()
        ctx.stream_mgr = FixedStream(b'')
        with self.assertRaises(CFBStructureError):
            CFBDirectoryMgr(ctx).load()

    def test_in_order_traversal(self):
        ctx = CFBContext(b'')
        ctx.directory = [
            make_record(0, 'Root Entry', DirType.ROOTSTORAGE, child=2),
            make_record(1, 'a', DirType.STREAM),
            make_record(2, 'b', DirType.STREAM, left=1, right=3),
            make_record(3, 'c', DirType.STREAM, right=4),
            make_record(4, 'd', DirType.STREAM),
        ]
        mgr = CFBDirectoryMgr(ctx)
        mgr.build_tree()
        self.assertEqual([c.record.id for c in ctx.tree.children], [1, 2, 3, 4])

    def test_cyclic_siblings_visit_once(self):
        ctx = CFBContext(b'')
        ctx.directory = [
            make_record(0, 'Root Entry', DirType.ROOTSTORAGE, child=1),
            make_record(1, 'a', DirType.STORAGE, right=2, child=0),
            make_record(2, 'b', DirType.STREAM, left=1, right=99),
        ]
        mgr = CFBDirectoryMgr(ctx)
        mgr.build_tree()
        self.assertEqual([c.record.id for c in ctx.tree.children], [1, 2])
        self.assertEqual(ctx.tree.children[0].children, [])

    def test_out_of_range_siblings_warn_once_each(self):
        ctx = CFBContext(b'')
        ctx.directory = [
            make_record(0, 'Root Entry', DirType.ROOTSTORAGE, child=1),
            make_record(1, 'a', DirType.STREAM, left=77, right=88),
        ]
        with self.assertLogs('pymsicfb.directory', level='WARNING') as logs:
            CFBDirectoryMgr(ctx).build_tree()
        self.assertEqual(len(logs.records), 2)
        self.assertEqual([c.record.id for c in ctx.tree.children], [1])

    def test_deep_unbalanced_tree(self):
        count = 3000
        ctx = CFBContext(b'')
        ctx.directory = [make_record(0, 'Root Entry', DirType.ROOTSTORAGE, child=count)]
        for i in range(1, count + 1):
            ctx.directory.append(make_record(i, f's{i}', DirType.STREAM, left=i - 1 if i > 1 else NOSTREAM))
        CFBDirectoryMgr(ctx).build_tree()
        self.assertEqual([c.record.id for c in ctx.tree.children], list(range(1, count + 1)))

    def test_nested_storages(self):
        cfb = CFBBuilder()
        folder = cfb.add_storage('Folder')
        sub = cfb.add_storage('Sub', parent=folder)
        cfb.add_stream('inner', b'inner data', parent=folder)
        cfb.add_stream('deep', b'deep data', parent=sub)
        cfb.add_stream('top', b'top data')
        reader = MSIReader(cfb.build())

        paths = [path for path, _ in reader.walk()]
        self.assertEqual(paths, ['top', 'Folder', 'Folder/Sub', 'Folder/Sub/deep', 'Folder/inner'])
        self.assertEqual(reader.open_stream('Folder/Sub/deep'), b'deep data')
        self.assertEqual(reader.open_stream('Folder'), b'')
        with self.assertRaises(KeyError):
            reader.open_stream('Folder/missing')

        self.assertEqual(reader.ctx.directory_mgr.find_containing('ee').decoded_name, 'deep')
        self.assertIsNone(reader.ctx.directory_mgr.find_containing('Fold'))

    def test_sibling_order_and_count(self):
        cfb = CFBBuilder()
        for name in ['bb', 'a', 'ccc', 'd']:
            cfb.add_stream(name, name.encode())
        reader = MSIReader(cfb.build())
        self.assertEqual([c.name for c in reader.tree.children], ['a', 'd', 'bb', 'ccc'])
        live = [r for r in reader.directory[1:] if r.type != DirType.UNALLOCATED]
        self.assertEqual(len(reader.tree.children), len(live))

class NameTests(unittest.TestCase):
    def test_pair(self):
        self.assertEqual(decode_msi_name(chr(0x3810)), 'G0')

    def test_single_and_table_mark(self):
        self.assertEqual(decode_msi_name(chr(0x4840) + chr(0x4800 + 10)), '!A')
        self.assertEqual(decode_msi_name(chr(0x4800 + 63)), '_')

    def test_passthrough(self):
        self.assertEqual(decode_msi_name('\x05SummaryInformation'), '\x05SummaryInformation')

    def test_range_edges(self):
        self.assertEqual(decode_msi_name(chr(0x3800)), '00')
        self.assertEqual(decode_msi_name(chr(0x47FF)), '__')
        self.assertEqual(decode_msi_name(chr(0x4841)), chr(0x4841))

class ZoneTests(unittest.TestCase):
    def test_zones(self):
        cfb = CFBBuilder()
        cfb.add_stream('a', b'a' * 100)
        reader = MSIReader(cfb.build())

        self.assertEqual(reader.zones[0], Zone(offset=0, size=512, label='Header'))
        fat_zones = [z for z in reader.zones if z.label == 'FAT Sector']
        self.assertEqual(fat_zones, [Zone(offset=(cfb.fat_sectors[0] + 1) * 512, size=512, label='FAT Sector', sector=cfb.fat_sectors[0])])
        dir_zones = [z for z in reader.zones if z.label == 'Directory Sector']
        self.assertEqual(len(dir_zones), 1)
        self.assertEqual(dir_zones[0].sector, cfb.dir_start)

    def test_cyclic_directory_chain(self):
        ctx = make_context([b''] * 5, [ENDOFCHAIN, ENDOFCHAIN, ENDOFCHAIN, 4, 3])
        ctx.header = Header()
        for i in range(109):
            ctx.header.sector_data_difat[i] = FREESECT
        ctx.header.sector_data_difat[0] = 0
        ctx.header.sector_start_directory = 3

        CFBZoneMgr(ctx).load()
        self.assertEqual(ctx.zones, [
            Zone(offset=0, size=512, label='Header'),
            Zone(offset=512, size=512, label='FAT Sector', sector=0),
            Zone(offset=2048, size=1024, label='Directory Sector', sector=3),
        ])

    def test_offset_translation(self):
        cfb = CFBBuilder()
        cfb.add_stream('a', b'a')
        reader = MSIReader(cfb.build())
        self.assertEqual(reader.sector_to_offset(0), 512)
        self.assertEqual(reader.offset_to_sector(100), 0)
        self.assertEqual(reader.offset_to_sector(512 * 3 + 7), 2)

if __name__ == '__main__':
    unittest.main()
