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
"""Low level helpers shared by the whole package: flag fields, cached struct
objects, debug printing and the progress protocol. Nothing in here knows about
the archive format itself."""
from __future__ import annotations

import os
import struct
import sys
import traceback as _traceback
from typing import ClassVar, Self, get_type_hints

from . import exception

struct_error = struct.error
struct_calcsize = struct.calcsize

# Structure wrappers ----------------------------------------------------------
class _StructsCache(dict):
    __slots__ = ()
    def __missing__(self, key):
        return self.setdefault(key, struct.Struct(key))

structs_cache = _StructsCache()

def unpack_many_from(fmt: str, buffer, offset: int = 0) -> tuple:
    """Unpack fmt from buffer at offset, using a cached Struct. Raises
    struct.error if the buffer is too short."""
    return structs_cache[fmt].unpack_from(buffer, offset)

# Util Classes ----------------------------------------------------------------
#------------------------------------------------------------------------------
_not_a_flag = object()  # sentinel for Flags typehints

def flag(index: int | None) -> bool:
    """Type erasing method for assigning Field index values."""
    return index    # type: ignore

class Flags:
    """Represents a read-only flag field. New Flags classes are defined by
    subclassing.

    When subclassing, simply typehint attribute names with `bool` to
    have these as aliases for bits in the Flags instance. Bit 0 refers to the
    least significant bit, and successive names increment from there. To
    override which bit an attribute maps to, set it using `= flag(bit)`.
    Specifying `= flag(None)` skips a bit without naming it."""
    __slots__ = ('_field',)
    _names: ClassVar[dict[str, int]] = {}

    @classmethod
    def __init_subclass__(cls, *args, **kwargs):
        super().__init_subclass__(*args, **kwargs)
        names_dict = {}
        current_index = 0
        hints = get_type_hints(cls)
        hints = ((att, hint) for att, hint in hints.items() if hint is bool)
        for attr, hint in hints: # we're only considering the 'bool' hints
            override = getattr(cls, attr, _not_a_flag)
            if override is not _not_a_flag:
                if override is None:
                    # None indicates just increment the index
                    current_index += 1
                    continue
                if isinstance(override, int):
                    if override < 0:
                        raise ValueError(
                            f'{cls.__name__} flag field index must be a '
                            f'positive integer or None, got {override}')
                    current_index = override
                else:
                    raise TypeError(f'{cls.__name__} flag field index must '
                                    f'be an integer or None, got {override!r}')
            names_dict[attr] = current_index
            current_index += 1
        cls._names = names_dict

    def __init__(self, value: int | Self = 0):
        object.__setattr__(self, '_field', int(value))

    def hex(self):
        """Returns hex string of value."""
        return f'{self._field:08X}'

    def __int__(self):
        return self._field
    def __index__(self):
        return self._field

    def __getitem__(self, index):
        """Get value by index. E.g., flags[3]"""
        return bool((self._field >> index) & 1)

    def __getattribute__(self, attr_key: str):
        """Get value by flag name. E.g. flags.compressed_archive.
        Since flag names may have values set on the class itself via
        `flagname = flag(bit)`, we can't use __getattr__ as accessing these
        won't raise AttributeError (which leads to __getattr__ being called).
        """
        try:
            index = type(self)._names[attr_key]
            return (super().__getattribute__('_field') >> index) & 1 == 1
        except KeyError:
            return super().__getattribute__(attr_key)

    def __setattr__(self, attr_key, value):
        raise AttributeError(f'{type(self).__name__} is read-only')

    def __eq__(self, other):
        if isinstance(other, Flags):
            return self._field == other._field
        return self._field == other

    def __hash__(self):
        return hash(self._field)

    def getTrueAttrs(self):
        """Returns attributes that are true."""
        return tuple(flname for flname in self.__class__._names if
                     getattr(self, flname))

    def __repr__(self):
        """Shows all set flags."""
        all_flags = ', '.join(self.getTrueAttrs()) if self._field else 'None'
        return f'0x{self.hex()} ({all_flags})'

# Debug printing --------------------------------------------------------------
# Constants used for censoring the user's home directory (see below)
_USER_DIR = os.path.expanduser('~')
_CENSORED_DIR = os.path.join(os.path.split(_USER_DIR)[0], '*****')

def deprint(*args, traceback=False, trace=True, frame=1):
    """Prints message along with file and line location to stderr - stdout is
    reserved for command output (see commands.cat).
       Available keyword arguments:
       trace: (default True) - if a Truthy value, displays the module,
              line number, and function this was used from
       traceback: (default False) - if a Truthy value, prints any tracebacks
              for exceptions that have occurred.
       frame: (default 1) - With `trace`, determines the function caller's
              frame for getting the function name
    """
    if trace:
        # CPython-only due to _getframe usage
        parent_frame = sys._getframe(frame)
        code_obj = parent_frame.f_code
        msg = f'{os.path.basename(code_obj.co_filename)} ' \
              f'{parent_frame.f_lineno:4d} {code_obj.co_name}: '
    else:
        msg = ''
    msg += ' '.join([f'{x}' for x in args])
    if traceback:
        msg += f'\n{_traceback.format_exc()}'
    msg = msg.replace(_USER_DIR, _CENSORED_DIR)
    print(msg, flush=True, file=sys.stderr)

# Progress --------------------------------------------------------------------
#------------------------------------------------------------------------------
class Progress(object):
    """Progress Callable: Shows progress when called. The base version does
    nothing, subclasses override _do_progress."""
    def __init__(self, full=1.0):
        if not full: raise exception.ArgumentError('Full must be non-zero!')
        self.message = ''
        self.full = 1.0 * full
        self.state = 0

    def setFull(self, full):
        """Sets full and for convenience, returns self."""
        if not full: raise exception.ArgumentError('Full must be non-zero!')
        self.full = 1.0 * full
        return self

    def plus(self, increment=1):
        """Increments progress by 1."""
        self.__call__(self.state + increment)

    def __call__(self, state, message=''):
        """Update progress with current state. Progress is state/full."""
        if message: self.message = message
        self._do_progress(1.0 * state / self.full, self.message)
        self.state = state

    def _do_progress(self, state, message):
        """Default _do_progress does nothing."""

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_value, exc_traceback): pass

class StreamProgress(Progress):
    """Progress writing one line per update to a text stream."""
    def __init__(self, out=None, full=1.0):
        super().__init__(full)
        self._out = out if out is not None else sys.stderr

    def _do_progress(self, state, message):
        self._out.write(f'[{state:6.1%}] {message}\n')
