# -*- coding: utf-8 -*-
#
# Simplifies communication to and from an NNTP Server
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

from contextlib import contextmanager
from functools import partial

from nntpclient.SocketBase import SocketBase
from nntpclient.SocketBase import SocketException
from nntpclient.NNTPContext import NNTPContext
from nntpclient.NNTPDeadline import NNTPDeadline
from nntpclient.NNTPDeadline import bind_context
from nntpclient.NNTPDeadline import dial
from nntpclient.NNTPTransport import NNTPTransport
from nntpclient.NNTPResponse import NNTPResponseCode
from nntpclient.NNTPResponse import NO_CHECK
from nntpclient.NNTPResponse import code_matches
from nntpclient.NNTPGroup import NNTPGroup
from nntpclient.NNTPGroup import NNTPGroupList
from nntpclient.NNTPArticle import NNTPArticle
from nntpclient.NNTPException import NNTPException
from nntpclient.NNTPException import NNTPConnectError
from nntpclient.NNTPException import NNTPIOError
from nntpclient.NNTPException import NNTPProtocolError
from nntpclient.NNTPException import NNTPSessionError

# Logging
import logging
from nntpclient.Logging import NNTPCLIENT_ENGINE
logger = logging.getLogger(NNTPCLIENT_ENGINE)

# Ports used by NNTP Servers
NNTP_PORT = 119
NNTP_SSL_PORT = 563

# The number of seconds we wait for a connection to be established if the
# context we were given doesn't have a deadline of it's own
NNTP_CONNECT_TIMEOUT = 30.0


class NNTPConnection(object):
    """
        NNTPConnection wraps and eases the communication to and from an
        NNTP Server.

        A connection is created with connect() which only returns once the
        server has greeted us:

            connection = NNTPConnection.connect('news.example.com')
            connection.authenticate('user', 'pass')
            group = connection.group('alt.test')

            article = connection.article('<id@example.com>')
            content = article.read()

            connection.quit()

        Every operation accepts an (optional) NNTPContext which can be used
        to cancel it or to limit how long it may take.  If no context is
        specified, then the timeout the connection was created with is
        used.

        Only one command can be in progress at a time; the body returned by
        article(), head() and body() must be read in it's entirety (or
        closed) before the next command is issued.  The connection is not
        safe to share between greenlets without your own locking.

        Any I/O failure (including a cancelled operation) leaves the
        connection unusable; you must close() it and connect again.
    """

    def __init__(self, sock, encoding=None, timeout=None, strict_list=False,
                 *args, **kwargs):
        """
        Wraps an already connected SocketBase object; you'll normally want
        to use NNTPConnection.connect() instead.
        """

        # Our connection
        self.sock = sock

        # get connection mode
        self.protocol = 'nntps' if sock.secure else 'nntp'

        # All of our line based I/O goes through here
        self.transport = NNTPTransport(sock, encoding=encoding)

        # The number of seconds each operation may take when no context is
        # specified (None means there is no limit)
        self.timeout = timeout

        # If set to True, list() fails on the first entry it can't parse
        # instead of ignoring it
        self.strict_list = strict_list

        # The welcome message (NNTPResponse) the server greeted us with
        self.welcome = None

        # The user we authenticated as (if we did)
        self.username = None

        # Set once close() is called
        self.closed = False

        # Set if an I/O failure left the connection in an unknown state
        self.broken = False

        # The body (NNTPDotReader) of the last article retrieved
        self._body = None

    @classmethod
    def connect(cls, host, port=None, secure=False, verify_cert=True,
                context=None, encoding=None, timeout=None, strict_list=False,
                connect_timeout=NNTP_CONNECT_TIMEOUT):
        """
        Establishes a connection to an NNTP Server and waits for it to greet
        us with a 200 (service available) response.

        The context (if specified) governs both establishing the connection
        and the greeting; otherwise timeout is used.  The remaining
        arguments are stored with the connection returned.

        An NNTPConnectError is thrown if the connection could not be made or
        if we weren't greeted the way we expected to be.
        """
        if port is None:
            port = NNTP_SSL_PORT if secure else NNTP_PORT

        sock = SocketBase(
            host=host, port=port, secure=secure, verify_cert=verify_cert)

        if context is None:
            context = NNTPContext(timeout=timeout)

        try:
            dial(sock, context, timeout=connect_timeout)

        except SocketException as e:
            logger.error('Could not establish a connection to %s.' % sock)
            _close_quietly(sock)
            raise NNTPConnectError(
                'Could not connect to %s:%d (%s)' % (host, port, e)) from e

        connection = cls(
            sock, encoding=encoding, timeout=timeout, strict_list=strict_list)

        try:
            with NNTPDeadline(sock, context):
                # Receive Initial Welcome Message
                connection.welcome = connection.transport.read_status_line(
                    NNTPResponseCode.SERVICE_AVAILABLE)

        except (NNTPIOError, NNTPProtocolError) as e:
            logger.error(
                'Failed to establish a handshake response from server.',
            )
            _close_quietly(sock)
            raise NNTPConnectError(
                'Unexpected greeting from %s:%d (%s)' % (host, port, e)) \
                from e

        logger.info('Connected to %s (%s)' % (
            connection, connection.welcome.code_str))
        return connection

    @classmethod
    def from_settings(cls, settings, context=None):
        """
        Connects to the first enabled server defined by an NNTPSettings()
        object and authenticates with it if a username was configured.
        """
        server = settings.server()
        if server is None:
            raise NNTPConnectError('No enabled NNTP Server was configured.')

        connection = cls.connect(
            host=server['host'],
            port=server['port'],
            secure=server['secure'],
            verify_cert=server['verify_cert'],
            encoding=server['encoding'],
            timeout=server['timeout'],
            strict_list=server['strict_list'],
            context=context,
        )

        if server['username']:
            try:
                connection.authenticate(
                    server['username'],
                    server['password'] or '',
                    context=context,
                )

            except NNTPException:
                logger.error('The specified credentials were not accepted.')
                _close_quietly(connection.sock)
                connection.closed = True
                raise

        return connection

    def _begin(self):
        """
        Verifies we're in a state to issue a new command
        """
        if self.closed:
            raise NNTPSessionError('The connection is closed.')

        if self.broken:
            raise NNTPSessionError('The connection is no longer usable.')

        if self._body is not None and not self._body.eof:
            raise NNTPSessionError(
                'The body of the last article has not been read yet.')

        self._body = None

    def _bind(self, context):
        """
        Binds the context specified (or our default one) to our socket
        """
        if context is None:
            context = NNTPContext(timeout=self.timeout)

        return bind_context(self.sock, context)

    @contextmanager
    def _operation(self, context=None):
        """
        Wraps a single operation; the context is bound to our socket for
        the duration of it and any I/O failure marks us broken.
        """
        self._begin()

        deadline = self._bind(context)
        try:
            yield deadline

        except NNTPIOError:
            self.broken = True
            raise

        finally:
            deadline.release()

    def _command(self, command, expect, log_as=None):
        """
        Sends a command and returns the response to it
        """
        self.transport.write_line(command, log_as=log_as)
        return self.transport.read_status_line(expect)

    def _body_complete(self, deadline, error=None):
        """
        Called once the body of an article has been read
        """
        deadline.release()

        if isinstance(error, NNTPIOError):
            self.broken = True

    def authenticate(self, username, password, context=None):
        """
        Authenticates with the server using AUTHINFO USER/PASS.

        The message the server responded with is returned.  An
        NNTPProtocolError is thrown if the credentials were not accepted.
        """
        with self._operation(context):
            self._command(
                'AUTHINFO USER %s' % username,
                NNTPResponseCode.PASSWORD_REQUIRED,
            )

            response = self._command(
                'AUTHINFO PASS %s' % password,
                NNTPResponseCode.AUTH_ACCEPTED,
                log_as='AUTHINFO PASS ********',
            )

        self.username = username
        logger.info('NNTP USER/PASS Handshake was successful.')
        return response.code_str

    def list(self, wildmat='', context=None, strict=None):
        """
        Retrieves the groups from the server (LIST) and returns them in an
        NNTPGroupList() of NNTPGroup() objects.

        wildmat (optional) restricts the groups returned, for example:
            connection.list('alt.binaries.*')

        Entries that can't be interpreted are ignored (and stored in the
        skipped attribute of the list returned) unless strict is set, in
        which case an NNTPProtocolError is thrown instead.  If strict is not
        specified, then the strict_list setting of the connection is used.
        """
        if strict is None:
            strict = self.strict_list

        command = 'LIST %s' % wildmat if wildmat else 'LIST'

        groups = NNTPGroupList()
        error = None

        with self._operation(context):
            self._command(command, NNTPResponseCode.LIST_FOLLOWS)

            # We always read the entire list so the connection remains usable
            # even if we end up rejecting it
            for line in self.transport.read_dot_block().lines():
                try:
                    groups.append(NNTPGroup.from_list(line))

                except NNTPProtocolError as e:
                    logger.debug('Skipping group entry %r' % line)
                    groups.skipped.append(line)
                    if error is None:
                        error = e

        if error is not None:
            if strict:
                raise error

            logger.warning('Ignored %d unparseable group entries.' % (
                len(groups.skipped),
            ))

        logger.info('Retrieved %d group(s)' % len(groups))
        return groups

    def group(self, name, context=None):
        """
        Changes to a specific group and returns it as an NNTPGroup() object.

        An NNTPProtocolError is thrown if the group could not be selected or
        if the response could not be interpreted.
        """
        with self._operation(context):
            response = self._command(
                'GROUP %s' % name, NNTPResponseCode.GROUP_SELECTED)

        group = NNTPGroup.from_group(response.code_str)
        logger.info('Using Group: %s.' % group.name)
        return group

    def _article(self, command, specifier, expect, context):
        """
        The work behind article(), head() and body()
        """
        self._begin()

        deadline = self._bind(context)
        try:
            response = self._command(
                '%s %s' % (command, specifier), expect)

            try:
                number, text = NNTPArticle.parse(response.code_str)

            except NNTPProtocolError:
                # Discard the content that follows so that we can carry on
                self.transport.read_dot_block().close()
                raise

        except Exception as e:
            if isinstance(e, NNTPIOError):
                self.broken = True

            deadline.release()
            raise

        # Our deadline remains in place until the body has been read
        self._body = self.transport.read_dot_block(
            on_complete=partial(self._body_complete, deadline))

        return NNTPArticle(number, text, self._body)

    def article(self, specifier, context=None):
        """
        Retrieves an article (headers and body) by it's message-id or
        article number.  An NNTPArticle() object is returned.
        """
        return self._article(
            'ARTICLE', specifier, NNTPResponseCode.ARTICLE_FOLLOWS, context)

    def head(self, specifier, context=None):
        """
        Retrieves the headers of an article by it's message-id or article
        number.  An NNTPArticle() object is returned.
        """
        return self._article(
            'HEAD', specifier, NNTPResponseCode.HEAD_FOLLOWS, context)

    def body(self, specifier, context=None):
        """
        Retrieves the body of an article by it's message-id or article
        number.  An NNTPArticle() object is returned.
        """
        return self._article(
            'BODY', specifier, NNTPResponseCode.BODY_FOLLOWS, context)

    def post(self, payload, context=None):
        """
        Posts an article to the NNTP Server.

        The payload should contain the entire article (headers, a blank line
        and the body); it can be a stream, bytes, a string or an iterable
        of lines.  Nothing is done to verify it's content.

        The (240) NNTPResponse is returned.  If the payload could not be
        sent in it's entirety, then the connection is left in an unknown
        state and is no longer usable.
        """
        with self._operation(context):
            self._command('POST', NNTPResponseCode.SEND_ARTICLE)

            try:
                self.transport.write_dot_block(payload)

            except Exception:
                # The block was left unterminated
                self.broken = True
                logger.error('Failed to send the article to the server.')
                raise

            response = self.transport.read_status_line(
                NNTPResponseCode.ARTICLE_RECEIVED)

        logger.info('Article posted (%s)' % response.code_str)
        return response

    def command(self, command, expect=NO_CHECK, context=None):
        """
        Sends a low-level command and returns the NNTPResponse.

        An NNTPProtocolError is thrown if the response code doesn't satisfy
        expect.  For example, if you specify 200 then the response code MUST
        be 200.  If you specify 2, any code from 200 to 299 is a success.  An
        expect of NO_CHECK (or None) disables the check entirely.

        Nothing following the status line is read; if the command returns a
        multi-line block, use transport.read_dot_block() to read it.
        """
        # Raises a ValueError now (before anything is sent) if expect is
        # not something we understand
        code_matches(NNTPResponseCode.SERVICE_AVAILABLE, expect)

        with self._operation(context):
            return self._command(command, expect)

    def quit(self, context=None):
        """
        Politely tells the server we're leaving (QUIT) and then closes the
        connection; the connection is closed even if the server doesn't
        acknowledge us.
        """
        try:
            with self._operation(context):
                return self._command(
                    'QUIT', NNTPResponseCode.CONNECTION_CLOSING)

        finally:
            self.close()

    def close(self):
        """
        Drop the connection.  Only the first call has any effect.

        An NNTPIOError is thrown if the underlying connection could not be
        closed cleanly.
        """
        if self.closed:
            return

        self.closed = True
        if self._body is not None:
            # Releases the context still bound to the unread body
            self._body.abandon()
            self._body = None

        try:
            self.sock.close()

        except SocketException as e:
            raise NNTPIOError(str(e)) from e

        logger.info('Disconnected from %s' % self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.close()

    def __str__(self):
        if self.username:
            return '%s://%s@%s:%d' % (
                self.protocol, self.username, self.sock.host, self.sock.port)

        return '%s://%s:%d' % (self.protocol, self.sock.host, self.sock.port)

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPConnection id=%d url="%s" />' % (id(self), str(self))


def _close_quietly(sock):
    """
    Closes a socket we're abandoning because of an earlier failure; that
    failure is what gets reported so a close error is only logged.
    """
    try:
        sock.close()

    except SocketException as e:
        logger.debug('Failed to close %s (%s)' % (sock, e))
