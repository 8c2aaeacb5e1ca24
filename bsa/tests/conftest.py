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
"""Keeps the global settings from leaking between tests."""
import pytest

from .. import bass

@pytest.fixture(autouse=True)
def _default_settings(monkeypatch, tmp_path):
    """Every test starts from the default settings, and a stray bsa.ini in
    the working directory is never picked up."""
    monkeypatch.setenv('BSA_INI', str(tmp_path / 'no_such_bsa.ini'))
    bass.inisettings.clear()
    bass.inisettings.update(bass.inisettings_defaults)
    yield
    bass.inisettings.clear()
    bass.inisettings.update(bass.inisettings_defaults)
