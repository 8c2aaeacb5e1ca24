# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of Wrye Bash.
#
#  Wrye Bash is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  Wrye Bash is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with Wrye Bash.  If not, see <https://www.gnu.org/licenses/>.
#
#  Wrye Bash copyright (C) 2005-2009 Wrye, 2010-2023 Wrye Bash Team
#  https://github.com/wrye-bash
#
# =============================================================================
"""Random access byte sources archives are read from. All of them support
concurrent read_at calls, so one worker per archive entry needs no extra
locking."""
from __future__ import annotations

import io
import mmap
import os
import threading

class ByteSource(object):
    """Abstract positioned reader over the bytes of an archive."""
    source_name = 'Unknown File'
    size: int

    def read_at(self, offset: int, size: int) -> bytes:
        """Return up to size bytes starting at offset. Fewer bytes are
        returned if the source ends before offset + size - callers check."""
        raise NotImplementedError

    def close(self):
        """Release the underlying resources."""

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_value, exc_traceback): self.close()

class BufferSource(ByteSource):
    """A bytes-like object held in memory."""
    def __init__(self, buffer, source_name='<memory>'):
        self._view = memoryview(buffer).cast('B')
        self.size = len(self._view)
        self.source_name = source_name

    def read_at(self, offset, size):
        if offset < 0 or size < 0: return b''
        return self._view[offset:offset + size].tobytes()

    def close(self):
        self._view.release()

class MmapSource(BufferSource):
    """A file on disk, memory mapped read only. Empty files can't be mapped,
    they are kept as an empty buffer instead."""
    def __init__(self, file_path):
        flags = os.O_RDONLY | getattr(os, 'O_BINARY', 0)
        fd = os.open(file_path, flags)
        try:
            if os.fstat(fd).st_size:
                self._mmap = mmap.mmap(fd, length=0, access=mmap.ACCESS_READ)
            else:
                self._mmap = None
        finally:
            os.close(fd)
        super(MmapSource, self).__init__(
            self._mmap if self._mmap is not None else b'',
            os.path.basename(os.fspath(file_path)))

    def close(self):
        super(MmapSource, self).close()
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None

class StreamSource(ByteSource):
    """A seekable binary stream - the seek+read pair is guarded by a lock, as
    the stream has a single cursor. The stream is not closed by close(), it
    belongs to the caller."""
    def __init__(self, stream, source_name=None):
        self._stream = stream
        self._lock = threading.Lock()
        self.size = stream.seek(0, io.SEEK_END)
        self.source_name = source_name or os.path.basename(
            os.fspath(getattr(stream, 'name', '<stream>')))

    def read_at(self, offset, size):
        if offset < 0 or size < 0: return b''
        with self._lock:
            self._stream.seek(offset)
            return self._stream.read(size)

def open_source(source) -> ByteSource:
    """Wrap whatever open() was passed into a ByteSource: paths are memory
    mapped, bytes-like objects used directly and binary streams read through
    a lock."""
    if isinstance(source, ByteSource):
        return source
    if isinstance(source, (str, os.PathLike)):
        return MmapSource(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BufferSource(source)
    if hasattr(source, 'read') and hasattr(source, 'seek'):
        return StreamSource(source)
    raise TypeError(f'Cannot read a BSA from {type(source).__name__}')
