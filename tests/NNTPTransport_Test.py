# -*- coding: utf-8 -*-
#
# A testing class/library for the NNTPTransport Object
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

import sys

from gevent import socket
from io import BytesIO
from time import time

from os.path import dirname
from os.path import abspath

try:
    from tests.TestBase import TestBase

except ImportError:
    sys.path.insert(0, dirname(dirname(abspath(__file__))))
    from tests.TestBase import TestBase

from nntpclient.SocketBase import SocketBase
from nntpclient.NNTPTransport import NNTPTransport
from nntpclient.NNTPResponse import NO_CHECK
from nntpclient.NNTPException import NNTPIOError
from nntpclient.NNTPException import NNTPCancelledError
from nntpclient.NNTPException import NNTPProtocolError


class BrokenStream(object):
    """
    A stream that fails after it has returned it's first chunk
    """
    def __init__(self, content):
        self.content = content

    def read(self, size=-1):
        if self.content is None:
            raise OSError('Disk on fire')

        content, self.content = self.content, None
        return content


class NNTPTransport_Test(TestBase):
    """
    The transport is tested over a socket pair; the test plays the part
    of the server on the other end of it.
    """

    def setUp(self):
        super(NNTPTransport_Test, self).setUp()

        self.server, client = socket.socketpair()
        self.server.settimeout(5.0)

        self.sock = SocketBase(sock=client)
        self.transport = NNTPTransport(self.sock)

        # Nothing in here should take long
        self.sock.set_deadline(time() + 5.0)

    def tearDown(self):
        self.sock.close()
        self.server.close()

        super(NNTPTransport_Test, self).tearDown()

    def recv_until(self, terminator):
        """
        Reads from the server side of our socket pair until the terminator
        specified is found.
        """
        data = b''
        while not data.endswith(terminator):
            chunk = self.server.recv(4096)
            if not chunk:
                break
            data += chunk

        return data

    def test_status_line(self):
        """
        Status lines are checked against what we expected
        """
        self.server.sendall(b'211 1 1 1 alt.test\r\n')
        response = self.transport.read_status_line(211)
        assert response.code == 211
        assert response.code_str == '1 1 1 alt.test'

        # Century match
        self.server.sendall(b'215 list follows\r\n')
        assert self.transport.read_status_line(2).code == 215

        # Decade match
        self.server.sendall(b'281 Ok\r\n')
        assert self.transport.read_status_line(28).code == 281

        # No checking at all
        self.server.sendall(b'500 What?\r\n')
        assert self.transport.read_status_line(NO_CHECK).code == 500

        # A code on it's own is fine too
        self.server.sendall(b'205\r\n')
        response = self.transport.read_status_line(205)
        assert response.code == 205
        assert response.code_str == ''

        # Bare LF line endings are tolerated
        self.server.sendall(b'200 ready\n')
        assert self.transport.read_status_line(200).code_str == 'ready'

    def test_status_line_mismatch(self):
        """
        An unexpected code is thrown as an NNTPProtocolError
        """
        self.server.sendall(b'430 No such article\r\n')
        try:
            self.transport.read_status_line(220)
            # We should throw an exception or this test fails
            assert False

        except NNTPProtocolError as e:
            assert e.malformed is False
            assert e.code == 430
            assert e.expected == 220
            assert e.message == 'No such article'
            assert str(e) == 'Expected 220 but got 430: No such article'

        self.server.sendall(b'this is not nntp\r\n')
        try:
            self.transport.read_status_line(200)
            # We should throw an exception or this test fails
            assert False

        except NNTPProtocolError as e:
            assert e.malformed is True
            assert e.line == 'this is not nntp'

        # We're still in sync
        self.server.sendall(b'200 ready\r\n')
        assert self.transport.read_status_line(200).code == 200

    def test_status_line_split(self):
        """
        Lines that arrive in pieces are put back together
        """
        self.server.sendall(b'21')
        self.server.sendall(b'1 1 1 1 alt')
        self.server.sendall(b'.test\r')
        self.server.sendall(b'\n200 next\r\n')

        assert self.transport.read_status_line(211).code_str == \
            '1 1 1 alt.test'
        assert self.transport.read_status_line(200).code_str == 'next'

    def test_dot_block(self):
        """
        Multi-line blocks are unstuffed and stop at the terminator
        """
        self.server.sendall(
            b'line one\r\n'
            b'..starts with a dot\r\n'
            b'\r\n'
            b'...\r\n'
            b'.\r\n'
            b'200 next\r\n'
        )

        completed = []
        reader = self.transport.read_dot_block(
            on_complete=lambda error=None: completed.append(error))
        assert reader.eof is False

        assert list(reader) == [
            b'line one',
            b'.starts with a dot',
            b'',
            b'..',
        ]
        assert reader.eof is True
        assert reader.line_count == 4

        # We were notified once (and without an error)
        assert completed == [None]

        # Nothing else is returned
        assert reader.next_line() is None
        assert reader.readline() == b''
        assert reader.read() == b''
        reader.close()
        assert completed == [None]

        # We're positioned at the next response
        assert self.transport.read_status_line(200).code_str == 'next'

    def test_dot_block_stream(self):
        """
        A multi-line block can be read as a stream of CRLF terminated lines
        """
        self.server.sendall(b'abc\r\n..def\r\nghi\r\n.\r\n')
        reader = self.transport.read_dot_block()
        assert reader.read(2) == b'ab'
        assert reader.readline() == b'c\r\n'
        assert reader.read() == b'.def\r\nghi\r\n'
        assert reader.eof is True

        self.server.sendall(b'one\r\ntwo\r\n.\r\n')
        reader = self.transport.read_dot_block()
        assert list(reader.lines()) == ['one', 'two']

    def test_dot_block_empty(self):
        """
        A block can contain nothing at all
        """
        self.server.sendall(b'.\r\n')
        reader = self.transport.read_dot_block()
        assert list(reader) == []
        assert reader.line_count == 0

    def test_dot_block_close(self):
        """
        Closing a block discards whatever is left of it
        """
        self.server.sendall(b'one\r\ntwo\r\nthree\r\n.\r\n205 bye\r\n')
        with self.transport.read_dot_block() as reader:
            assert reader.next_line() == b'one'

        assert reader.eof is True
        assert self.transport.read_status_line(205).code == 205

    def test_dot_block_lost(self):
        """
        A block that is cut short is reported through on_complete
        """
        self.server.sendall(b'one\r\n')

        completed = []
        reader = self.transport.read_dot_block(
            on_complete=lambda error=None: completed.append(error))
        assert reader.next_line() == b'one'

        self.server.close()
        with self.assertRaises(NNTPIOError):
            reader.next_line()

        assert reader.eof is True
        assert len(completed) == 1
        assert isinstance(completed[0], NNTPIOError)

    def test_write_line(self):
        """
        Lines are terminated for us
        """
        self.transport.write_line('GROUP alt.test')
        assert self.recv_until(b'\r\n') == b'GROUP alt.test\r\n'

        self.transport.write_line(
            'AUTHINFO PASS secret', log_as='AUTHINFO PASS ********')
        assert self.recv_until(b'\r\n') == b'AUTHINFO PASS secret\r\n'

        for line in ('GROUP alt.test\r\nQUIT', 'GROUP\n', 'GROUP\r'):
            with self.assertRaises(ValueError):
                self.transport.write_line(line)

    def test_write_dot_block(self):
        """
        Content is stuffed, normalized and terminated
        """
        total = self.transport.write_dot_block(
            b'Subject: test\n\r\n.hidden\r\nlast line')

        expected = \
            b'Subject: test\r\n\r\n..hidden\r\nlast line\r\n.\r\n'
        assert total == len(expected)
        assert self.recv_until(b'\r\n.\r\n') == expected

        # Strings work too
        self.transport.write_dot_block('.\n')
        assert self.recv_until(b'\r\n.\r\n') == b'..\r\n.\r\n'

        # So do streams (even if a line spans more then one read)
        stream = BytesIO(b'a' * 10000 + b'\n.b\n')
        self.transport.write_dot_block(stream)
        assert self.recv_until(b'\r\n.\r\n') == \
            b'a' * 10000 + b'\r\n..b\r\n.\r\n'

        # and lists of lines
        self.transport.write_dot_block(['one', b'.two\r\n', 'three\n'])
        assert self.recv_until(b'\r\n.\r\n') == \
            b'one\r\n..two\r\nthree\r\n.\r\n'

        # Nothing at all
        self.transport.write_dot_block(b'')
        assert self.recv_until(b'.\r\n') == b'.\r\n'

    def test_write_dot_block_failure(self):
        """
        If the content can't be read, the block is never terminated
        """
        with self.assertRaises(NNTPIOError):
            self.transport.write_dot_block(BrokenStream(b'line one\n'))

        assert self.server.recv(4096) == b'line one\r\n'

        # Nothing else was sent
        self.server.settimeout(0.2)
        with self.assertRaises(socket.timeout):
            self.server.recv(4096)

        # The same goes for anything else that goes wrong with the source
        def lines():
            yield b'line two\n'
            raise RuntimeError('Generator on fire')

        with self.assertRaises(NNTPIOError):
            self.transport.write_dot_block(lines())

        assert self.server.recv(4096) == b'line two\r\n'
        with self.assertRaises(socket.timeout):
            self.server.recv(4096)

    def test_dot_block_exchange(self):
        """
        What is written as a block is read back exactly as it was sent
        """
        lines = [
            b'Subject: test',
            b'',
            b'.',
            b'..',
            b'.leading dot',
            b'...three dots',
            b'a middle . dot',
            b'trailing dot.',
            b'',
        ]

        sender = NNTPTransport(SocketBase(sock=self.server))
        sender.write_dot_block(lines)

        # An empty line at the end survives the trip too
        assert list(self.transport.read_dot_block()) == lines

        # Nothing more was sent then the block itself
        sender.write_line('205 bye')
        assert self.transport.read_status_line(205).code_str == 'bye'

    def test_deadline(self):
        """
        A read that outlives the socket deadline is cancelled
        """
        self.sock.set_deadline(time() + 0.2)

        start = time()
        with self.assertRaises(NNTPCancelledError):
            self.transport.readline()

        assert time() - start < 2.0

        # A deadline in the past stops writes too
        self.sock.set_deadline(time() - 1.0)
        with self.assertRaises(NNTPCancelledError):
            self.transport.write_line('QUIT')

    def test_connection_lost(self):
        """
        Losing the connection is not the same as being cancelled
        """
        self.server.close()
        try:
            self.transport.read_status_line(200)
            # We should throw an exception or this test fails
            assert False

        except NNTPCancelledError:
            # Wrong exception
            assert False

        except NNTPIOError:
            assert True
