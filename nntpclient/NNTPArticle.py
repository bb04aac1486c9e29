# -*- coding: utf-8 -*-
#
# A handle on an article (or part of one) being retrieved
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

from nntpclient.NNTPException import NNTPProtocolError


class NNTPArticle(object):
    """
    Returned by the ARTICLE, HEAD and BODY commands.

    number is the article number reported by the server, text is whatever
    followed it (usually the message-id) and body is an NNTPDotReader()
    the content can be read from.

    The body must be read in it's entirety (or closed) before the next
    command is sent to the server.
    """

    def __init__(self, number, text, body):
        self.number = number
        self.text = text
        self.body = body

    @staticmethod
    def parse(message):
        """
        Splits the text following a 220, 221 or 222 response into the
        article number and the text that follows it:
            <number> <message-id> [anything else]

        A tuple of (number, text) is returned.  An NNTPProtocolError is
        thrown if the article number could not be interpreted.
        """
        parts = message.split(' ', 1)

        try:
            number = int(parts[0], 10)

        except ValueError:
            raise NNTPProtocolError(
                'Invalid article number in response: %r' % message,
                malformed=True,
                line=message,
            )

        return (number, parts[1] if len(parts) > 1 else '')

    def read(self, size=-1):
        """
        Shortcut to read() the body
        """
        return self.body.read(size)

    def close(self):
        """
        Discards whatever is left of the body
        """
        self.body.close()

    def __iter__(self):
        return iter(self.body)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        if exc_type is None:
            self.close()

        else:
            # Nothing more will be read from the body
            self.body.abandon()

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPArticle number=%d text="%s" />' % (
            self.number, self.text)
