# -*- coding: utf-8 -*-
#
# A cancellation signal (with an optional deadline) for NNTP operations
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

from gevent.event import Event
from time import time


class NNTPContext(object):
    """
    An NNTPContext is handed to the NNTPConnection operations so that the
    caller can abort them.

    The context is cancelled explicitly by calling cancel() (from another
    greenlet) and implicitly once its deadline passes.

        # give up if the group list takes longer then 2 minutes
        context = NNTPContext(timeout=120)
        groups = connection.list(context=context)

    timeout is relative (in seconds from now) where as deadline is an
    absolute time as returned by time.time(). If both are specified, the
    earliest of the two is used.
    """

    def __init__(self, timeout=None, deadline=None):

        if timeout is not None:
            timeout = time() + float(timeout)
            if deadline is None or timeout < deadline:
                deadline = timeout

        # Our absolute deadline (or None if there isn't one)
        self.deadline = deadline

        # Set once we're cancelled
        self._event = Event()

    def cancel(self):
        """
        Cancels the context; any operation running under it fails as soon
        as it notices.  Cancelling more then once has no further effect.
        """
        self._event.set()

    @property
    def event(self):
        """
        The gevent Event() set when cancel() is called.
        """
        return self._event

    @property
    def cancelled(self):
        """
        Returns True if the context was cancelled or if it's deadline has
        passed.
        """
        if self._event.is_set():
            return True

        return self.deadline is not None and self.deadline <= time()

    def remaining(self):
        """
        Returns the number of seconds left until our deadline (never less
        then zero) or None if no deadline was specified.
        """
        if self.deadline is None:
            return None

        return max(0.0, self.deadline - time())

    def wait(self, timeout=None):
        """
        Blocks until the context is cancelled or until timeout seconds have
        elapsed.  Returns True if the context was cancelled.
        """
        self._event.wait(timeout=timeout)
        return self.cancelled

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPContext deadline=%s cancelled=%s />' % (
            self.deadline, self.cancelled)
