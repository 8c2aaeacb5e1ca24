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
import io
import struct

import pytest

from ..bolt import Flags, Progress, StreamProgress, deprint, flag, \
    struct_error, unpack_many_from
from ..exception import ArgumentError

class _TestFlags(Flags):
    first: bool
    second: bool
    skipped: bool = flag(None)
    fifth: bool = flag(4)

class TestFlags(object):
    def test_flags_bits(self):
        """Names map to consecutive bits unless overridden."""
        assert _TestFlags._names == {'first': 0, 'second': 1, 'fifth': 4}
        flags = _TestFlags(0b10001)
        assert flags.first
        assert not flags.second
        assert flags.fifth
        assert flags[4] and not flags[1]
        assert flags.getTrueAttrs() == ('first', 'fifth')

    def test_flags_int(self):
        flags = _TestFlags(0x11)
        assert int(flags) == 0x11
        assert flags.hex() == '00000011'
        assert flags == 0x11
        assert flags == _TestFlags(0x11)
        assert hash(flags) == hash(0x11)

    def test_flags_read_only(self):
        flags = _TestFlags(1)
        with pytest.raises(AttributeError):
            flags.first = False

    def test_flags_repr(self):
        assert repr(_TestFlags(0)) == '0x00000000 (None)'
        assert repr(_TestFlags(2)) == '0x00000002 (second)'

    def test_flags_bad_index(self):
        with pytest.raises(ValueError):
            class _BadFlags(Flags):
                neg: bool = flag(-1)
        with pytest.raises(TypeError):
            class _WorseFlags(Flags):
                word: bool = 'a'

def test_unpack_many_from():
    buffer = struct.pack('<2I', 3, 4) + struct.pack('>H', 5)
    assert unpack_many_from('<2I', buffer) == (3, 4)
    assert unpack_many_from('<I', buffer, 4) == (4,)
    assert unpack_many_from('>H', buffer, 8) == (5,)
    with pytest.raises(struct_error):
        unpack_many_from('<I', buffer, 8)

class TestProgress(object):
    def test_progress_full(self):
        with pytest.raises(ArgumentError):
            Progress(0)
        with pytest.raises(ArgumentError):
            Progress().setFull(0)

    def test_stream_progress(self):
        out = io.StringIO()
        progress = StreamProgress(out).setFull(4)
        progress(1, 'Extracting')
        progress.plus()
        assert progress.state == 2
        assert out.getvalue().splitlines() == ['[ 25.0%] Extracting',
                                               '[ 50.0%] Extracting']

def test_deprint(capsys):
    """deprint goes to stderr and leaves stdout alone."""
    deprint('hello', 42)
    captured = capsys.readouterr()
    assert not captured.out
    assert captured.err.rstrip().endswith('test_deprint: hello 42')
    deprint('no trace', trace=False)
    assert capsys.readouterr().err == 'no trace\n'
