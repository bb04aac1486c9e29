# -*- coding: utf-8 -*-
#
# A Low Level Socket Manager
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

from gevent import socket
from gevent import ssl
from gevent.select import select

from time import time

# Logging
import logging
from nntpclient.Logging import NNTPCLIENT_ENGINE
logger = logging.getLogger(NNTPCLIENT_ENGINE)

# The longest (in seconds) a blocked read or write waits before it checks
# the deadline again.  This bounds how quickly a forced deadline (such as
# the one set when an operation is cancelled) is noticed.
IO_POLL_INTERVAL = 0.1

# The default number of bytes to read from the socket at a time
DEFAULT_READ_SIZE = 32768


class SocketException(Exception):
    """generic socket manager exception class"""
    pass


class SocketDeadlineExceeded(SocketException):
    """
    Raised when a read or write could not complete before the deadline
    associated with the socket.
    """
    pass


class SocketBase(object):
    """
       A thin wrapper around a (gevent) socket that provides an absolute
       deadline for all pending I/O.

       Arguments to initialize a SocketBase:

            host            the host to connect to

            port            int (default=0)

            secure          Use TLS encryption when managing the connection

            verify_cert     Verify the certificate presented by the remote
                            server (only applicable if secure is set)

            sock            An already connected socket to adopt; this is
                            mostly useful for testing.

       The deadline is an absolute time (as returned by time.time()); once it
       passes, any blocked (or new) read() and send() raises a
       SocketDeadlineExceeded exception.  A deadline of None means that I/O
       may block for as long as it takes.
    """

    def __init__(self, host=None, port=0, secure=False, verify_cert=True,
                 sock=None, *args, **kwargs):

        try:
            self.port = int(port)
        except (TypeError, ValueError):
            self.port = 0

        self.host = host

        # a little qwirky, but allow users to set secure to
        # None and have it treated the same way as False
        self.secure = bool(secure)
        self.verify_cert = verify_cert

        self.socket = sock
        self.connected = sock is not None

        # Our absolute I/O deadline (None if there isn't one)
        self.deadline = None

        if self.socket is not None:
            self._prepare()

    def connect(self, timeout=None):
        """
        Establishes a connection to the host and port this object was
        initialized with.

        timeout identifies how long (in seconds) we are willing to wait for
        the connection (and the secure handshake if applicable) to complete.

        A SocketException is thrown if the connection could not be made.
        """

        if self.connected:
            # nothing to see here
            return True

        logger.debug("Connecting to host: %s:%d" % (self.host, self.port))

        try:
            sock = socket.create_connection(
                (self.host, self.port), timeout=timeout)

        except socket.timeout:
            raise SocketException('Connection timeout')

        except OSError as e:
            raise SocketException(
                'Could not connect to %s:%d (%s)' % (self.host, self.port, e))

        # Keep alive flag
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

        if self.secure:
            # Encrypt our socket (changing it into an SSLSocket Object)
            context = ssl.create_default_context()
            if not self.verify_cert:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE

            try:
                sock = context.wrap_socket(sock, server_hostname=self.host)

            except (ssl.SSLError, OSError) as e:
                sock.close()
                raise SocketException('Secure Connection Failed (%s)' % e)

            logger.debug('Secure connection established using %s' % (
                sock.version(),
            ))

        self.socket = sock
        self.connected = True
        self._prepare()

        logger.info("Connection established to %s:%d" % (
            self.host,
            self.port,
        ))
        return True

    def _prepare(self):
        """
        Prepares a freshly connected socket for use
        """
        # Disable Blocking; all of our waiting is done through select()
        self.socket.setblocking(False)

    def set_deadline(self, deadline):
        """
        Sets the absolute time (in seconds since the epoch) all pending and
        future I/O must complete by.  Setting this to None removes the
        deadline.

        This can safely be called from another greenlet while a read() or
        send() is blocked; the change is noticed within IO_POLL_INTERVAL
        seconds.
        """
        self.deadline = deadline

    def remaining(self):
        """
        Returns the number of seconds left before our deadline is reached
        or None if there is no deadline set.

        A SocketDeadlineExceeded exception is thrown if the deadline has
        already passed.
        """
        if self.deadline is None:
            return None

        remaining = self.deadline - time()
        if remaining <= 0.0:
            raise SocketDeadlineExceeded('I/O deadline exceeded')

        return remaining

    def can_read(self, timeout=0.0):
        """
        Checks if there is data that can be read from the
        socket (if open). Returns True if there is data and
        False if not.

        It returns None if something very bad happens such as
        a dead connection (bad file descriptor), etc
        """

        if self.socket is None:
            # no socket or no connection
            return None

        if self.secure and self.socket.pending():
            # Decrypted data is already waiting for us
            return True

        try:
            rs, _, _ = select([self.socket], [], [], timeout)

        except (OSError, ValueError):
            # Bad File Descriptor... hmm
            return None

        return len(rs) > 0

    def can_write(self, timeout=0.0):
        """
        Checks if there is data that can be written to the
        socket (if open). Returns True if writing is possible and
        False if not.

        It returns None if something very bad happens such as
        a dead connection (bad file descriptor), etc
        """

        if self.socket is None:
            # no socket or no connection
            return None

        try:
            _, ws, _ = select([], [self.socket], [], timeout)

        except (OSError, ValueError):
            # Bad File Descriptor... hmm
            return None

        return len(ws) > 0

    def _wait(self, check):
        """
        Blocks until check() reports the socket is ready, honouring our
        deadline along the way.
        """
        while True:
            remaining = self.remaining()
            if remaining is None:
                timeout = IO_POLL_INTERVAL
            else:
                timeout = min(remaining, IO_POLL_INTERVAL)

            ready = check(timeout)
            if ready is None:
                raise SocketException('Connection broken')

            if ready:
                return

    def read(self, max_bytes=DEFAULT_READ_SIZE):
        """
        Reads up to max_bytes from the socket; blocking until at least
        one byte is available.

        A SocketException is thrown if the connection is lost (an empty
        read is never returned) and a SocketDeadlineExceeded if our
        deadline passes first.
        """

        while True:
            if not self.connected:
                raise SocketException('No connection')

            self._wait(self.can_read)

            try:
                data = self.socket.recv(max_bytes)

            except (ssl.SSLWantReadError, ssl.SSLWantWriteError,
                    BlockingIOError):
                # Raised by SSL Socket; This is okay data was received, but
                # not all of it. Be patient and try again.
                continue

            except ssl.SSLZeroReturnError:
                raise SocketException('Connection broken')

            except OSError as e:
                raise SocketException('Connection broken (%s)' % e)

            if not data:
                # We lost the connection
                raise SocketException('Connection lost')

            return data

    def send(self, data):
        """
        Sends all of the data specified; blocking until it has been handed
        to the operating system.  The number of bytes sent is returned.
        """
        tot_bytes = 0
        view = memoryview(data)

        while tot_bytes < len(view):
            if not self.connected:
                raise SocketException('No connection')

            self._wait(self.can_write)

            try:
                bytes_sent = self.socket.send(view[tot_bytes:])

            except (ssl.SSLWantReadError, ssl.SSLWantWriteError,
                    BlockingIOError):
                continue

            except OSError as e:
                # errno.EPIPE (Broken Pipe) usually at this point
                raise SocketException('Connection lost (%s)' % e)

            if not bytes_sent:
                raise SocketException('Connection lost')

            # Handle content sent
            tot_bytes += bytes_sent

        return tot_bytes

    def close(self):
        """
        Closes the socket.  Calling close() on a socket that was already
        closed does nothing.

        A SocketException is thrown if the operating system reports a
        failure while closing the socket.
        """
        sock = self.socket
        if sock is None:
            return

        # Remove Socket Reference
        self.socket = None

        # update connection flag
        self.connected = False

        try:
            sock.close()

        except OSError as e:
            raise SocketException('Failed to close connection (%s)' % e)

        logger.debug('Connection to %s:%d closed.' % (self.host, self.port))

    def __str__(self):
        if self.secure:
            return 'tls://%s:%d' % (self.host, self.port)
        return 'tcp://%s:%d' % (self.host, self.port)

    def __repr__(self):
        """
        Return a printable object
        """
        return '<SocketBase id=%d url="%s" />' % (id(self), str(self))
