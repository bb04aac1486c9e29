# -*- coding: utf-8 -*-
#
# A testing class/library for the NNTPGroup Object
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


import sys

from os.path import dirname
from os.path import abspath

try:
    from tests.TestBase import TestBase

except ImportError:
    sys.path.insert(0, dirname(dirname(abspath(__file__))))
    from tests.TestBase import TestBase

from nntpclient.NNTPGroup import NNTPGroup
from nntpclient.NNTPGroup import NNTPGroupList
from nntpclient.NNTPGroup import NNTPPostingStatus
from nntpclient.NNTPException import NNTPProtocolError


class NNTPGroup_Test(TestBase):

    def test_from_list(self):
        """
        Test the parsing of LIST (ACTIVE) entries
        """
        group = NNTPGroup.from_list(
            'alt.binaries.test 0000000010 0000000001 y')
        assert group.name == 'alt.binaries.test'
        assert group.high == 10
        assert group.low == 1
        assert group.count == 10
        assert group.posting == NNTPPostingStatus.PERMITTED
        assert str(group) == 'alt.binaries.test'

        group = NNTPGroup.from_list('alt.moderated 5 3 m')
        assert group.count == 3
        assert group.posting == NNTPPostingStatus.MODERATED

        # An empty group
        group = NNTPGroup.from_list('alt.empty 4 5 n')
        assert group.count == 0
        assert group.posting == NNTPPostingStatus.NOT_PERMITTED

        # Flags we don't know about are treated as not permitted
        group = NNTPGroup.from_list('alt.aliased 5 1 =alt.other')
        assert group.posting == NNTPPostingStatus.NOT_PERMITTED

    def test_from_list_malformed(self):
        """
        Entries that can't be interpreted throw an NNTPProtocolError
        """
        for line in ('', 'alt.test', 'alt.test 5 1', 'alt.test 5 1 y extra',
                     'alt.test five 1 y', 'alt.test 5 one y',
                     'alt.test  5 1 y'):
            try:
                NNTPGroup.from_list(line)
                # We should throw an exception or this test fails
                assert False

            except NNTPProtocolError as e:
                assert e.malformed is True
                assert e.line == line

    def test_from_group(self):
        """
        Test the parsing of a GROUP response
        """
        group = NNTPGroup.from_group('709278590 69039573 778318162 alt.test')
        assert group.name == 'alt.test'
        assert group.count == 709278590
        assert group.low == 69039573
        assert group.high == 778318162

        # GROUP doesn't tell us anything about posting
        assert group.posting == NNTPPostingStatus.UNKNOWN

        for message in ('', '1 2 3', '1 2 3 alt.test extra',
                        'a 2 3 alt.test', '1 b 3 alt.test', '1 2 c alt.test'):
            try:
                NNTPGroup.from_group(message)
                # We should throw an exception or this test fails
                assert False

            except NNTPProtocolError as e:
                assert e.malformed is True
                assert e.line == message

    def test_equality(self):
        """
        Groups with the same details are equal
        """
        a = NNTPGroup.from_list('alt.test 5 1 y')
        b = NNTPGroup('alt.test', low=1, high=5, count=5,
                      posting=NNTPPostingStatus.PERMITTED)
        assert a == b
        assert hash(a) == hash(b)
        assert len(set([a, b])) == 1

        assert a != NNTPGroup('alt.test', low=1, high=5, count=5)
        assert a != 'alt.test'

    def test_group_list(self):
        """
        An NNTPGroupList is a list that remembers what it skipped
        """
        groups = NNTPGroupList()
        assert len(groups) == 0
        assert groups.skipped == []

        groups.append(NNTPGroup('alt.test'))
        groups.skipped.append('garbage')
        assert len(groups) == 1
        assert groups.skipped == ['garbage']
