# -*- coding: utf-8 -*-
#
# A Series of Utilities to simplify life
#
# Copyright (C) 2015-2017 Chris Caron <lead2gold@gmail.com>
#
# This program is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.


def parse_bool(arg, default=False):
    """
    Parses strings such as 'yes' and 'no' as well as other strings such as
    'on' or 'off' , 'enable' or 'disable', etc.

    This method can just simplify checks to these variables.

    If the content could not be parsed, then the default is
    returned.
    """

    if isinstance(arg, str):
        # no = no - False
        # of = short for off - False
        # 0  = int for False
        # fa = short for False - False
        # f  = short for False - False
        # n  = short for No or Never - False
        # ne  = short for Never - False
        # di  = short for Disable(d) - False
        # de  = short for Deny - False
        if arg.lower()[0:2] in ('de', 'di', 'ne', 'f', 'n', 'no', 'of',
                                '0', 'fa'):
            return False
        # ye = yes - True
        # on = short for off - True
        # 1  = int for True
        # tr = short for True - True
        # t  = short for True - True
        # al = short for Always (and Allow) - True
        # en  = short for Enable(d) - True
        elif arg.lower()[0:2] in ('en', 'al', 't', 'y', 'ye', 'on', '1',
                                  'tr'):
            return True
        # otherwise
        return default

    if arg is None:
        return default

    # Handle other types
    return bool(arg)


def parse_timeout(arg, default=None):
    """
    Parses a timeout (in seconds) which must be a positive number.  None (or
    anything that can't be interpreted) returns the default.
    """
    try:
        timeout = float(arg)

    except (TypeError, ValueError):
        return default

    if timeout <= 0.0:
        return default

    return timeout
