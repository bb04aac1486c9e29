# -*- coding: utf-8 -*-
#
# An NNTPResponse Object returned by the NNTPConnection
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

import re

from nntpclient.NNTPException import NNTPProtocolError

# All status lines are handled via the following; the code is always 3
# digits and is followed by a single space (and a description) if anything
# follows it at all.  The description is kept exactly as it was received.
NNTP_RESPONSE_RE = re.compile(
    r'^(?P<code>[0-9]{3})( (?P<desc>.*))?$',
)

# Pass this as the expected code to disable all response code checking
NO_CHECK = -1


class NNTPResponseCode(object):
    """
    A Simple lookup table that makes the codes returned by the NNTP
    server a bit more human readable.  These codes are based on:
       - http://tools.ietf.org/html/rfc3977
       - http://tools.ietf.org/html/rfc4643
    """

    # 200 Service available, posting allowed
    SERVICE_AVAILABLE = 200

    # 205 Connection closing
    CONNECTION_CLOSING = 205

    # 211 Group successfully selected
    GROUP_SELECTED = 211

    # 215 Information follows (multi-line)
    LIST_FOLLOWS = 215

    # 220 Article follows (multi-line)
    ARTICLE_FOLLOWS = 220

    # 221 Headers follow (multi-line)
    HEAD_FOLLOWS = 221

    # 222 Body follows (multi-line)
    BODY_FOLLOWS = 222

    # 240 Article received OK
    ARTICLE_RECEIVED = 240

    # 281 Authentication accepted
    AUTH_ACCEPTED = 281

    # 340 Send article to be posted
    SEND_ARTICLE = 340

    # 381 More authentication information required
    PASSWORD_REQUIRED = 381


def code_matches(code, expected):
    """
    Returns True if the code specified satisfies what we expected.

    expected can be:
        - a full 3 digit code (100 - 999) which must match exactly
        - a single digit (1 - 9) which matches the entire century; for
          example 2 matches anything from 200 to 299
        - two digits (10 - 99) which matches the entire decade; for
          example 21 matches anything from 210 to 219
        - None (or NO_CHECK) which matches everything

    Strings made up of digits (such as '2') are treated as their integer
    equivalent.  A ValueError is thrown for anything else.
    """

    if expected is None:
        return True

    if isinstance(expected, str):
        # '2' is no different then 2
        expected = int(expected.strip(), 10)

    if expected < 0:
        # NO_CHECK
        return True

    if 1 <= expected < 10:
        return code // 100 == expected

    if 10 <= expected < 100:
        return code // 10 == expected

    if 100 <= expected < 1000:
        return code == expected

    raise ValueError('Invalid expected response code: %r' % expected)


class NNTPResponse(object):
    """
    The status line returned by the NNTP Server after every command; it is
    made up of a response code and the (human readable) text that followed
    it.
    """

    def __init__(self, code=None, code_str=None, *args, **kwargs):
        """
        Initializes a response object
        """

        # The response information is placed here
        self.code = code
        if self.code is None:
            self.code = 0

        self.code_str = code_str
        if self.code_str is None:
            self.code_str = ''

    @staticmethod
    def parse(line):
        """
        Takes a status line (with it's line ending already removed) and
        returns an NNTPResponse() object.

        An NNTPProtocolError is thrown if the line could not be interpreted.
        """
        match = NNTP_RESPONSE_RE.match(line)
        if not match:
            raise NNTPProtocolError(
                'Could not interpret response: %r' % line,
                malformed=True,
                line=line,
            )

        code = int(match.group('code'))
        if code < 100:
            raise NNTPProtocolError(
                'Invalid response code: %r' % line,
                malformed=True,
                line=line,
            )

        return NNTPResponse(code, match.group('desc'))

    def matches(self, expected):
        """
        Returns True if our code satisfies the expected code (or code
        prefix); see code_matches() for details.
        """
        return code_matches(self.code, expected)

    def __str__(self):
        """
        Returns the response information returned from the NNTP Server
        """
        if not self.code:
            return ''
        elif not self.code_str:
            return '%d' % self.code

        return '%d: %s' % (self.code, self.code_str)

    def __repr__(self):
        """
        Return an unambigious version of the object
        """
        return '<NNTPResponse code=%d id="%s" />' % (self.code, id(self))
