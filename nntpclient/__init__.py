# -*- coding: utf-8 -*-
#
# The Base Library used to make imports easier for users
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
__title__ = 'nntpclient'
__version__ = '0.0.1'
__author__ = 'Chris Caron <lead2gold@gmail.com>'
__license__ = 'LGPLv3'
__copyright__ = 'Copyright 2015-2017 Chris Caron'

from .NNTPConnection import NNTPConnection
from .NNTPContext import NNTPContext
from .NNTPSettings import NNTPSettings
from .NNTPResponse import NNTPResponse
from .NNTPResponse import NNTPResponseCode
from .NNTPResponse import NO_CHECK
from .NNTPGroup import NNTPGroup
from .NNTPGroup import NNTPPostingStatus
from .NNTPArticle import NNTPArticle
from .NNTPException import NNTPException
from .NNTPException import NNTPConnectError
from .NNTPException import NNTPIOError
from .NNTPException import NNTPCancelledError
from .NNTPException import NNTPProtocolError
from .NNTPException import NNTPSessionError

__all__ = [
    'NNTPConnection',
    'NNTPContext',
    'NNTPSettings',
    'NNTPResponse',
    'NNTPResponseCode',
    'NO_CHECK',
    'NNTPGroup',
    'NNTPPostingStatus',
    'NNTPArticle',
    'NNTPException',
    'NNTPConnectError',
    'NNTPIOError',
    'NNTPCancelledError',
    'NNTPProtocolError',
    'NNTPSessionError',
]
