# -*- coding: utf-8 -*-
#
# NNTPGroup is an object to simplify group manipulation
#
# Copyright (C) 2017 Chris Caron <lead2gold@gmail.com>
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


class NNTPPostingStatus(object):
    """
    The posting flags found in a LIST (ACTIVE) response
    """
    PERMITTED = 'y'
    NOT_PERMITTED = 'n'
    MODERATED = 'm'

    # The GROUP response does not tell us anything about posting
    UNKNOWN = None

    @staticmethod
    def parse(flag):
        """
        Converts a posting flag into one of our statuses; anything we don't
        recognize is treated as NOT_PERMITTED.
        """
        if flag == NNTPPostingStatus.PERMITTED:
            return NNTPPostingStatus.PERMITTED

        elif flag == NNTPPostingStatus.MODERATED:
            return NNTPPostingStatus.MODERATED

        return NNTPPostingStatus.NOT_PERMITTED


class NNTPGroup(object):
    """
    A newsgroup as reported by the NNTP Server.

    count is the number of articles the server reported (GROUP) or an
    estimate based on the water marks (LIST).
    """

    def __init__(self, name, low=0, high=0, count=0,
                 posting=NNTPPostingStatus.UNKNOWN, *args, **kwargs):

        # The Group Name
        self.name = name

        # The low and high water marks
        self.low = low
        self.high = high

        # The (estimated) number of articles in the group
        self.count = count

        # The posting status
        self.posting = posting

    @staticmethod
    def from_list(line):
        """
        Parses a single line of a LIST (ACTIVE) response which takes the
        format of:
            <name> <high> <low> <flag>

        An NNTPProtocolError is thrown if the line could not be parsed.
        """
        parts = line.split(' ')
        if len(parts) != 4:
            raise NNTPProtocolError(
                'Unexpected group entry: %r' % line,
                malformed=True,
                line=line,
            )

        try:
            high = int(parts[1], 10)
            low = int(parts[2], 10)

        except ValueError:
            raise NNTPProtocolError(
                'Invalid water marks in group entry: %r' % line,
                malformed=True,
                line=line,
            )

        # An empty group has a high water mark that is one less then it's
        # low water mark
        count = high - low + 1 if high >= low else 0

        return NNTPGroup(
            name=parts[0],
            low=low,
            high=high,
            count=count,
            posting=NNTPPostingStatus.parse(parts[3]),
        )

    @staticmethod
    def from_group(message):
        """
        Parses the text following a 211 (group selected) response which
        takes the format of:
            <count> <low> <high> <name>

        An NNTPProtocolError is thrown if the text could not be parsed.
        """
        parts = message.split(' ')
        if len(parts) != 4:
            raise NNTPProtocolError(
                'Unexpected group response: %r' % message,
                malformed=True,
                line=message,
            )

        values = []
        for part in parts[0:3]:
            try:
                values.append(int(part, 10))

            except ValueError:
                # We stop at the first bad entry
                raise NNTPProtocolError(
                    'Invalid number %r in group response: %r' % (
                        part, message),
                    malformed=True,
                    line=message,
                )

        return NNTPGroup(
            name=parts[3],
            count=values[0],
            low=values[1],
            high=values[2],
        )

    def __eq__(self, other):
        if not isinstance(other, NNTPGroup):
            return NotImplemented

        return (self.name, self.low, self.high, self.count, self.posting) \
            == (other.name, other.low, other.high, other.count,
                other.posting)

    def __hash__(self):
        return hash((self.name, self.low, self.high, self.count,
                     self.posting))

    def __str__(self):
        return self.name

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPGroup name="%s" low=%d high=%d count=%d posting=%s />' \
            % (self.name, self.low, self.high, self.count, self.posting)


class NNTPGroupList(list):
    """
    The groups returned by a LIST command.  Any lines the server sent that
    could not be interpreted are stored in skipped.
    """

    def __init__(self, *args, **kwargs):
        super(NNTPGroupList, self).__init__(*args, **kwargs)

        # The (raw) lines we could not make sense of
        self.skipped = []
