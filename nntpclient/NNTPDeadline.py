# -*- coding: utf-8 -*-
#
# Maps an NNTPContext onto the deadline of a (blocking) socket
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

import gevent
from gevent.event import Event

from nntpclient.SocketBase import SocketDeadlineExceeded

# Logging
import logging
from nntpclient.Logging import NNTPCLIENT_ENGINE
logger = logging.getLogger(NNTPCLIENT_ENGINE)

# The deadline forced onto a socket when it's operation is cancelled; any
# time in the past would do.
A_LONG_TIME_AGO = 1.0


class NNTPDeadline(object):
    """
    A scoped binding between an NNTPContext and a SocketBase object.

    While acquired, the socket deadline follows the deadline of the
    context and a watcher greenlet waits for the context to be cancelled.
    If it is, the socket deadline is forced into the past which causes
    any read or write blocked on the socket to fail with a
    SocketDeadlineExceeded exception.

    Releasing the binding stops the watcher and does not return until the
    watcher has exited, so nothing outlives the operation it guarded.

        with NNTPDeadline(sock, context):
            sock.send(b'GROUP alt.test\\r\\n')
            data = sock.read()

    """

    def __init__(self, sock, context):
        # The socket we manage the deadline of
        self.sock = sock

        # The NNTPContext we follow
        self.context = context

        # A one-shot signal telling our watcher to stop
        self._released = Event()

        # Our watcher greenlet (while acquired)
        self._watcher = None

    def acquire(self):
        """
        Applies the context deadline to the socket and starts watching the
        context for cancellation.
        """
        if self._watcher is not None:
            # Already acquired
            return self

        if self.context.cancelled:
            # Nothing is allowed to block if we were cancelled before we
            # even got started
            self.sock.set_deadline(A_LONG_TIME_AGO)

        else:
            # This clears the deadline if the context doesn't have one
            self.sock.set_deadline(self.context.deadline)

        self._watcher = gevent.spawn(self._watch)
        return self

    def _watch(self):
        """
        Our watcher; it waits on the context and our release signal
        """
        gevent.wait([self.context.event, self._released], count=1)

        if self._released.is_set():
            # We were released; leave the deadline alone
            return

        logger.debug('Operation cancelled; forcing I/O deadline on %s' % (
            self.sock,
        ))
        self.sock.set_deadline(A_LONG_TIME_AGO)

    def release(self):
        """
        Stops watching the context and waits for our watcher to exit.
        Releasing more then once has no further effect.
        """
        watcher = self._watcher
        if watcher is None or self._released.is_set():
            return

        self._released.set()

        # Wait for the watcher to acknowledge
        watcher.join()

    @property
    def active(self):
        """
        Returns True while the binding is acquired (and not released)
        """
        return self._watcher is not None and not self._released.is_set()

    def __enter__(self):
        return self.acquire()

    def __exit__(self, exc_type, exc_value, tb):
        self.release()

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPDeadline active=%s context=%r />' % (
            self.active, self.context)


def bind_context(sock, context):
    """
    Binds the context to the socket and returns the (acquired) NNTPDeadline
    handle; it's up to the caller to release() it.
    """
    return NNTPDeadline(sock, context).acquire()


def dial(sock, context, timeout=None):
    """
    Establishes the connection for the SocketBase object specified while
    honouring the context; it's deadline limits how long we wait and
    cancelling it aborts the attempt.

    timeout is only used if the context doesn't have a deadline of it's own.

    A SocketException is thrown if the connection could not be made and a
    SocketDeadlineExceeded if the context was cancelled first.
    """
    if context.cancelled:
        raise SocketDeadlineExceeded('Connection cancelled')

    remaining = context.remaining()
    if remaining is not None:
        timeout = remaining

    dialer = gevent.spawn(sock.connect, timeout=timeout)
    gevent.wait([dialer, context.event], count=1)

    if not dialer.ready():
        # We were cancelled while we were still connecting
        dialer.kill()
        raise SocketDeadlineExceeded('Connection cancelled')

    # Returns True or raises the exception thrown while connecting
    return dialer.get()
