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
"""Functions for initializing the settings in bass.inisettings on startup,
from the defaults, an optional bsa.ini and command line overrides."""
from __future__ import annotations

import os
from configparser import ConfigParser, Error as _ConfigError

from . import bass
from .bolt import deprint
from .exception import BoltError

# the ini section all settings live in - section is case sensitive, keys are
# not
_SETTINGS_SECTION = 'Settings'
# type prefix of the ini keys -> converter
_prefix_types = {
    's': lambda parser, key: parser.get(_SETTINGS_SECTION, key),
    'i': lambda parser, key: parser.getint(_SETTINGS_SECTION, key),
    'b': lambda parser, key: parser.getboolean(_SETTINGS_SECTION, key),
}

def default_ini_path() -> str:
    """The bsa.ini next to the current working directory, overridable via the
    BSA_INI environment variable."""
    return os.environ.get('BSA_INI', os.path.join(os.getcwd(), 'bsa.ini'))

def _bsa_ini_parser(bsa_ini_path):
    bsa_ini_parser = None
    if bsa_ini_path is not None and os.path.exists(bsa_ini_path):
        bsa_ini_parser = ConfigParser()
        try:
            bsa_ini_parser.read(bsa_ini_path, encoding='utf-8')
        except _ConfigError as e:
            raise BoltError(f'{bsa_ini_path}: malformed ini - {e}') from e
    return bsa_ini_parser

def _setting_prefix(default_value):
    if isinstance(default_value, bool): return 'b'
    if isinstance(default_value, int): return 'i'
    return 's'

def _parse_bsa_ini(bsa_ini_parser) -> dict:
    parsed = {}
    if bsa_ini_parser is None or not bsa_ini_parser.has_section(
            _SETTINGS_SECTION):
        return parsed
    lower_keys = {k.lower(): k for k in bass.inisettings_defaults}
    # the prefix must match the type of the default, e.g. iDebug is wrong
    expected_prefixes = {k: _setting_prefix(v) for k, v in
                         bass.inisettings_defaults.items()}
    for ini_key in bsa_ini_parser.options(_SETTINGS_SECTION):
        prefix, bare_key = ini_key[:1], ini_key[1:]
        if (setting := lower_keys.get(bare_key)) is None:
            deprint(f'Ignoring unknown bsa.ini setting {ini_key!r}')
            continue
        if prefix != (wanted := expected_prefixes[setting]):
            deprint(f'Ignoring bsa.ini setting {ini_key!r} - {setting} '
                    f'needs the {wanted!r} prefix')
            continue
        try:
            parsed[setting] = _prefix_types[prefix](bsa_ini_parser, ini_key)
        except ValueError as e:
            raise BoltError(f'bsa.ini: bad value for {ini_key!r} - {e}') from e
    return parsed

def init_settings(bsa_ini_path: str | None = None, **overrides) -> dict:
    """Reset bass.inisettings to the defaults, then apply the ini (if it
    exists) and finally any non-None overrides. Returns bass.inisettings."""
    if bsa_ini_path is None:
        bsa_ini_path = default_ini_path()
    settings = bass.inisettings
    settings.clear()
    settings.update(bass.inisettings_defaults)
    settings.update(_parse_bsa_ini(_bsa_ini_parser(bsa_ini_path)))
    settings.update((k, v) for k, v in overrides.items() if v is not None)
    if settings['ExtractWorkers'] < 1:
        raise BoltError(f'ExtractWorkers must be at least 1, got '
                        f'{settings["ExtractWorkers"]}')
    return settings
