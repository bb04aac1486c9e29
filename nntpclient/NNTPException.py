# -*- coding: utf-8 -*-
#
# The exceptions raised while talking to an NNTP Server
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


class NNTPException(Exception):
    """generic nntp client exception class"""
    pass


class NNTPConnectError(NNTPException):
    """
    We could not establish a connection to the NNTP Server or it did not
    greet us the way we expected it to.  The connection was never handed
    back to the caller.
    """
    pass


class NNTPIOError(NNTPException):
    """
    Reading from or writing to the NNTP Server failed.  The connection is
    left in an unknown state and should not be used any further.
    """
    pass


class NNTPCancelledError(NNTPIOError):
    """
    A read or write was unblocked because the operation was cancelled or
    because its deadline expired.
    """
    pass


class NNTPSessionError(NNTPException):
    """
    The connection was used in a way it can not support; it was already
    closed, it was broken by an earlier failure or the body of a previously
    fetched article was never consumed.
    """
    pass


class NNTPProtocolError(NNTPException):
    """
    The NNTP Server responded with something we did not expect.

    If the response could not be interpreted at all then malformed is set
    to True and line holds what we received.  Otherwise code and message
    hold the response and expected holds what we were waiting for.
    """

    def __init__(self, message, code=None, expected=None, malformed=False,
                 line=None):

        super(NNTPProtocolError, self).__init__(message)

        # The code returned by the server (if one could be parsed)
        self.code = code

        # The code (or code prefix) we were expecting
        self.expected = expected

        # The text that followed the code
        self.message = message

        # Set if the response could not be parsed
        self.malformed = malformed

        # The raw line (only set on malformed responses)
        self.line = line

    def __str__(self):
        if self.malformed:
            return 'Malformed response: %s' % self.message

        return 'Expected %s but got %s: %s' % (
            self.expected, self.code, self.message)
