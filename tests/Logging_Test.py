# -*- coding: utf-8 -*-
#
# A testing class/library for the Logging helpers
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
import logging

from os.path import join
from os.path import isfile
from os.path import dirname
from os.path import abspath

try:
    from tests.TestBase import TestBase

except ImportError:
    sys.path.insert(0, dirname(dirname(abspath(__file__))))
    from tests.TestBase import TestBase

from nntpclient.Logging import add_handler
from nntpclient.Logging import set_verbosity
from nntpclient.Logging import NNTPCLIENT_LOGGER
from nntpclient.Logging import NNTPCLIENT_ENGINE


class Logging_Test(TestBase):

    def tearDown(self):
        # Restore the default
        set_verbosity(-1)

        super(Logging_Test, self).tearDown()

    def test_verbosity(self):
        """
        Each level of verbosity opens up more of the logging
        """
        client = logging.getLogger(NNTPCLIENT_LOGGER)
        engine = logging.getLogger(NNTPCLIENT_ENGINE)

        set_verbosity(-1)
        assert client.level == logging.ERROR
        assert engine.level == logging.ERROR

        set_verbosity(2)
        assert client.level == logging.INFO
        assert engine.level == logging.INFO

        # The server interaction comes first
        set_verbosity(3)
        assert client.level == logging.INFO
        assert engine.level == logging.DEBUG

        set_verbosity(4)
        assert client.level == logging.DEBUG
        assert engine.level == logging.DEBUG

    def test_add_handler(self):
        """
        Handlers can be routed to a file (or nowhere at all)
        """
        logger = logging.getLogger('%s.test' % NNTPCLIENT_ENGINE)
        logger.propagate = False

        log_file = join(self.tmp_dir, 'nntpclient.log')
        assert add_handler(logger, sendto=log_file, backupCount=0) is True
        assert add_handler(logger, sendto=None) is True

        # Unsupported destinations are refused
        assert add_handler(logger, sendto=42) is False

        logger.setLevel(logging.INFO)
        logger.info('200 news.example.com ready')

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        assert isfile(log_file) is True
        with open(log_file) as f:
            assert '200 news.example.com ready' in f.read()
