# -*- coding: utf-8 -*-
#
# Line based NNTP I/O (status lines and dot-terminated blocks)
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

from nntpclient.NNTPResponse import NNTPResponse
from nntpclient.NNTPResponse import NO_CHECK
from nntpclient.NNTPException import NNTPIOError
from nntpclient.NNTPException import NNTPCancelledError
from nntpclient.NNTPException import NNTPProtocolError
from nntpclient.SocketBase import SocketException
from nntpclient.SocketBase import SocketDeadlineExceeded

# Logging
import logging
from nntpclient.Logging import NNTPCLIENT_ENGINE
logger = logging.getLogger(NNTPCLIENT_ENGINE)

# Defines the end of line delimiter
EOL = b'\r\n'

# Defines the line that terminates a multi-line block
EOD = b'.'

# Define the default encoding to use on NNTP I/O Streams
NNTP_DEFAULT_ENCODING = 'UTF-8'

# Default block size to read from a stream we're posting
DEFAULT_BLOCK_SIZE = 8192


class NNTPDotReader(object):
    """
    Reads a multi-line (dot-terminated) block from the NNTP Server.

    The block is read lazily (as you consume it) and can only be consumed
    once. Iterating over the reader returns each line (as bytes) with the
    line ending removed and the dot-stuffing undone:

        for line in reader:
            print(line)

    Alternatively, read() and readline() allow the block to be treated as
    a byte stream where each line is terminated by a CRLF.

    on_complete is called (once) when the end of the block is reached, when
    reading it fails or when it is closed (or abandoned).  It receives the
    exception that ended the block early as it's error keyword argument (or
    None).
    """

    def __init__(self, transport, on_complete=None):
        # The transport we read from
        self.transport = transport

        # Set once the terminating line has been read (or we failed)
        self.eof = False

        # The number of lines read so far
        self.line_count = 0

        # Content pulled from the transport but not yet handed out by read()
        self._pending = b''

        self._on_complete = on_complete

    def _complete(self, error=None):
        """
        Marks the reader as finished and notifies whoever was interested;
        error is the exception that ended the block early (if any).
        """
        self.eof = True

        callback = self._on_complete
        self._on_complete = None
        if callback is not None:
            callback(error=error)

    def next_line(self):
        """
        Returns the next line in the block or None if we've reached the end
        """
        if self.eof:
            return None

        try:
            line = self.transport.readline()

        except (NNTPIOError, NNTPProtocolError) as e:
            self._complete(e)
            raise

        if line == EOD:
            logger.debug('End of data reached after %d line(s).' % (
                self.line_count,
            ))
            self._complete()
            return None

        if line.startswith(EOD):
            # undo dot-stuffing
            line = line[1:]

        self.line_count += 1
        return line

    def lines(self):
        """
        A generator returning each line decoded as text
        """
        for line in self:
            yield line.decode(self.transport.encoding, 'replace')

    def readline(self):
        """
        Returns the next line (with a CRLF line ending) or an empty byte
        string if there is nothing left.
        """
        if self._pending:
            idx = self._pending.find(b'\n')
            if idx < 0:
                idx = len(self._pending)

            data = self._pending[:idx + 1]
            self._pending = self._pending[idx + 1:]
            return data

        line = self.next_line()
        if line is None:
            return b''

        return line + EOL

    def read(self, size=-1):
        """
        Reads up to size bytes from the block; the entire (remaining) block
        is returned if size is negative.  An empty byte string is returned
        once everything has been read.
        """
        if size is None or size < 0:
            chunks = [self._pending]
            self._pending = b''
            for line in self:
                chunks.append(line)
                chunks.append(EOL)

            return b''.join(chunks)

        while len(self._pending) < size:
            line = self.next_line()
            if line is None:
                break
            self._pending += line + EOL

        data = self._pending[:size]
        self._pending = self._pending[size:]
        return data

    def close(self):
        """
        Reads (and discards) whatever is left of the block so that the
        connection is ready for the next command.
        """
        self._pending = b''
        for _ in self:
            pass

        # We may have already been at the end
        self._complete()

    def abandon(self):
        """
        Gives up on whatever is left of the block without reading it.

        The connection is left part way through the block, so it can not be
        used for anything else; whoever is waiting on us is told so with an
        NNTPIOError.
        """
        self._pending = b''
        if self.eof:
            return

        self._complete(
            NNTPIOError('The block was abandoned before it was read.'))

    def __iter__(self):
        return self

    def __next__(self):
        line = self.next_line()
        if line is None:
            raise StopIteration
        return line

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        if exc_type is None:
            self.close()

        else:
            self.abandon()

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPDotReader lines=%d eof=%s />' % (
            self.line_count, self.eof)


class NNTPTransport(object):
    """
    Reads and writes the lines exchanged with an NNTP Server over a
    SocketBase object.

    Everything that is read passes through an internal buffer; this is the
    only state kept between commands.

    Socket failures are thrown as NNTPIOError exceptions (or
    NNTPCancelledError if the deadline of the socket was reached).
    """

    def __init__(self, sock, encoding=None):
        # Our socket
        self.sock = sock

        # Store the default encoding
        self.encoding = encoding
        if not self.encoding:
            self.encoding = NNTP_DEFAULT_ENCODING

        # Temporary Buffer of read (unprocessed) data
        self._buffer = bytearray()

    def _read(self):
        """
        Reads whatever is available from the socket
        """
        try:
            return self.sock.read()

        except SocketDeadlineExceeded as e:
            raise NNTPCancelledError(str(e)) from e

        except SocketException as e:
            raise NNTPIOError(str(e)) from e

    def _send(self, data):
        """
        Sends all of the data to the socket
        """
        try:
            return self.sock.send(data)

        except SocketDeadlineExceeded as e:
            raise NNTPCancelledError(str(e)) from e

        except SocketException as e:
            raise NNTPIOError(str(e)) from e

    def readline(self):
        """
        Returns the next line received (as bytes) with it's line ending
        removed.
        """
        while True:
            idx = self._buffer.find(b'\n')
            if idx >= 0:
                line = bytes(self._buffer[:idx])
                del self._buffer[:idx + 1]

                if line.endswith(b'\r'):
                    line = line[:-1]
                return line

            self._buffer += self._read()

    def write_line(self, line, log_as=None):
        """
        Sends a single line to the server; the CRLF is added for you.

        log_as allows you to specify what is logged in place of the line
        itself (to keep passwords out of log files).
        """
        if isinstance(line, str):
            line = line.encode(self.encoding)

        if b'\r' in line or b'\n' in line:
            raise ValueError('A line can not contain line breaks.')

        logger.debug('TX: %s' % (
            log_as if log_as is not None
            else line.decode(self.encoding, 'replace')))

        self._send(line + EOL)

    def read_status_line(self, expect=NO_CHECK):
        """
        Reads a status line and returns it as an NNTPResponse() object.

        The code returned must satisfy the expected code; see
        nntpclient.NNTPResponse.code_matches() for the details.  An
        NNTPProtocolError is thrown if it doesn't (or if the line could not
        be parsed).
        """
        line = self.readline().decode(self.encoding, 'replace')
        response = NNTPResponse.parse(line)

        logger.debug('RX: %s' % response)

        if not response.matches(expect):
            raise NNTPProtocolError(
                response.code_str,
                code=response.code,
                expected=expect,
            )

        return response

    def read_dot_block(self, on_complete=None):
        """
        Returns an NNTPDotReader() positioned at the start of a multi-line
        block.  Nothing is read until the reader is consumed.
        """
        return NNTPDotReader(self, on_complete=on_complete)

    def _chunks(self, source):
        """
        A generator returning the (byte) content of the source specified.

        If source is an iterable (other than a stream or a string) then
        each entry is treated as a line.
        """

        if isinstance(source, str):
            source = source.encode(self.encoding)

        if isinstance(source, (bytes, bytearray)):
            yield bytes(source)
            return

        if hasattr(source, 'read'):
            while True:
                try:
                    chunk = source.read(DEFAULT_BLOCK_SIZE)

                except Exception as e:
                    raise NNTPIOError(
                        'Failed to read the content to send (%s)' % e) from e

                if not chunk:
                    return

                if isinstance(chunk, str):
                    chunk = chunk.encode(self.encoding)
                yield chunk

        iterator = iter(source)
        while True:
            try:
                line = next(iterator)

            except StopIteration:
                return

            except Exception as e:
                raise NNTPIOError(
                    'Failed to read the content to send (%s)' % e) from e

            if isinstance(line, str):
                line = line.encode(self.encoding)

            if not line.endswith(b'\n'):
                line += EOL
            yield line

    @staticmethod
    def _stuff(line):
        """
        Prepares a line (without it's line ending) for the wire
        """
        if line.endswith(b'\r'):
            line = line[:-1]

        if line.startswith(EOD):
            # dot-stuffing
            line = EOD + line

        return line + EOL

    def write_dot_block(self, source):
        """
        Sends the content of source to the server as a multi-line block;
        line endings are normalized to CRLF, lines starting with a dot are
        escaped and the terminating line is sent once all of the content has
        been written.

        source can be a stream (anything with a read() function), bytes, a
        string or an iterable of lines.

        If the content can not be read, an NNTPIOError is thrown and the
        block is never terminated.  The server is left waiting for the rest
        of the block so the connection should not be used any further.

        The total number of bytes sent is returned.
        """
        total = 0
        pending = b''

        for chunk in self._chunks(source):
            pending += chunk
            lines = pending.split(b'\n')

            # The last entry is incomplete (or empty)
            pending = lines.pop()
            if lines:
                total += self._send(b''.join([self._stuff(l) for l in lines]))

        if pending:
            # The content did not end with a line ending; add one
            total += self._send(self._stuff(pending))

        total += self._send(EOD + EOL)

        logger.debug('TX: <multi-line block of %d byte(s)>' % total)
        return total

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPTransport id=%d buffered=%d />' % (
            id(self), len(self._buffer))
