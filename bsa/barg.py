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
"""This module parses the command line of the bsa tool."""

import argparse

from . import bass

def _positive_int(value):
    int_value = int(value)
    if int_value < 1:
        raise argparse.ArgumentTypeError(f'must be at least 1, got {value}')
    return int_value

def make_parser():
    """Helper function to define commandline arguments"""
    parser = argparse.ArgumentParser(prog='bsa',
        description='Inspect and extract Bethesda Software Archives (BSA '
                    'files, versions 103 to 105).')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {bass.AppVersion}')
    parser.add_argument('--ini', dest='ini_path', default=None,
                        help='Settings file to read instead of ./bsa.ini '
                             '(or $BSA_INI).')
    parser.add_argument('--encoding', dest='encoding', default=None,
                        help='Encoding of folder and file names (default: '
                             'sBsaEncoding from the ini, else cp1252).')
    parser.add_argument('-d', '--debug', action='store_true', default=None,
                        dest='debug',
                        help='Print tracebacks for errors.')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND',
                                       required=True)
    def _cmd(name, descr):
        sub = subparsers.add_parser(name, help=descr, description=descr)
        sub.add_argument('file', help='The BSA file to operate on.')
        return sub
    ### Commands ###
    _cmd('ls', 'List the paths of all files in the archive.')
    cat = _cmd('cat', 'Write the contents of one file to stdout.')
    cat.add_argument('path', help=r'Path of the file inside the archive, '
                                  r'e.g. meshes\clutter\bucket.nif - forward '
                                  r'slashes work too.')
    extract = _cmd('extract', 'Extract files from the archive.')
    extract.add_argument('--into', default=None,
                         help='Folder to extract into (default: the current '
                              'folder).')
    extract.add_argument('-w', '--workers', type=_positive_int, default=None,
                         help='Number of threads to extract with (default: '
                              'iExtractWorkers from the ini, else 1).')
    extract.add_argument('--only', nargs='+', default=None, metavar='PATH',
                         help='Extract only these archive paths.')
    extract.add_argument('-p', '--progress', action='store_true',
                         help='Report progress on stderr.')
    _cmd('validate', 'Check that all folder and file names match their '
                     'hashes.')
    return parser

def parse(sys_argv=None):
    """Parse sys_argv (default: sys.argv[1:])."""
    return make_parser().parse_args(sys_argv)
