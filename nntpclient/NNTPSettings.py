# -*- coding: utf-8 -*-
#
# Centralized Settings and Configuration
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
#
# Settings are only valid if at least one server configuration was found.
#
# A Sample configuration (config.yaml) might look like this:
#   global:
#       timeout: 30
#
#   servers:
#     - username: lead2gold
#       password: abc123
#       host: awesome.nntp.server.com
#       port: 563
#       secure: True
#       verify_cert: False
#       encoding: UTF-8
#       strict_list: False
#       enabled: True
#
#   # have you got another server you want to add as a backup?
#   # you can add as many more as you want here, just follow
#   # the proper yaml formating and indentation.
#
#     - username: l2g
#       password: 123abc
#       host: awesome.backup.nntp.server.com
#       port: 119
#       enabled: False

import yaml

from os import name as os_name
from os.path import join
from os.path import isfile
from os.path import abspath
from os.path import expanduser
from yaml.error import YAMLError
from copy import deepcopy

from nntpclient.NNTPConnection import NNTP_PORT
from nntpclient.NNTPConnection import NNTP_SSL_PORT
from nntpclient.NNTPTransport import NNTP_DEFAULT_ENCODING
from nntpclient.Utils import parse_bool
from nntpclient.Utils import parse_timeout

# Logging
import logging
from nntpclient.Logging import NNTPCLIENT_LOGGER
logger = logging.getLogger(NNTPCLIENT_LOGGER)

# Root path
if os_name == 'nt':
    ROOT = 'C:\\'
else:
    ROOT = '/'

# The Configuration Directory
DEFAULT_BASE_DIR = join(expanduser('~'), '.config', 'nntpclient')

# Possible Configuration Paths
DEFAULT_CONFIG_FILE_PATHS = (
    join(DEFAULT_BASE_DIR, 'config.yaml'),
    join(expanduser('~'), '.nntpclient', 'config.yaml'),
    join(ROOT, 'etc', 'nntpclient', 'config.yaml'),
    join(ROOT, 'etc', 'nntpclient.yaml'),
)

# Keyword used in configuration to host our global settings
GLOBAL_KEY = 'global'

# Global Variables mapped to their defaults if not found.
DEFAULT_GLOBAL_VARIABLES = {
    # The number of seconds an operation may take when no NNTPContext is
    # specified; None means there is no limit
    'timeout': None,
}

# Keyword used in configuration to host all of the defined NNTP Servers
SERVER_LIST_KEY = 'servers'

# Server Variables mapped to their defaults if not found.
# if None is specified, then the field is mandatory or we'll abort
DEFAULT_SERVER_VARIABLES = {
    'host': None,
    'port': None,
    'username': None,
    'password': None,
    'secure': False,
    'verify_cert': True,
    'encoding': NNTP_DEFAULT_ENCODING,
    'strict_list': False,
    'timeout': None,
    'enabled': True,
}

# A Parsed Configuration Shell
VALID_SETTINGS_ENTRY = {
    GLOBAL_KEY: DEFAULT_GLOBAL_VARIABLES,
    SERVER_LIST_KEY: [],
}


class NNTPSettings(object):
    """
    Loads the NNTP Server configuration from a YAML file.
    """

    def __init__(self, cfg_file=None):
        """
        Initializes the configuration based the configuration file specified.
        If no configuration file is specified, then the default paths are
        checked instead.

        cfg_file can be a list of potential config files; the first one
        found is loaded. If you just pass in a string, that is presumed to
        be the configuration file that is read and loaded.
        """

        # The data read from the configuration file
        self.cfg_data = deepcopy(VALID_SETTINGS_ENTRY)

        # The NNTP Server configuration found in the configuration file
        self.nntp_servers = []

        # Global settings
        self.nntp_global = DEFAULT_GLOBAL_VARIABLES.copy()

        # The configuration file loaded (if any)
        self.cfg_file = None

        # Is valid flag
        self._is_valid = False

        if not cfg_file:
            cfg_file = DEFAULT_CONFIG_FILE_PATHS

        elif isinstance(cfg_file, str):
            cfg_file = (cfg_file, )

        # Load the first configuration file found in our list
        cfg_file = next((path for path in cfg_file
                         if isfile(expanduser(path))), None)

        if cfg_file:
            self.read(cfg_file)

    def is_valid(self):
        """
        Returns True if the information loaded is valid and false if it isn't
        """
        return self._is_valid

    def _read_yaml(self, cfg_file):
        """
        Loads the configuration file passed in and returns it merged with
        our defaults.  None is returned if the file could not be loaded.
        """

        cfg_file = abspath(expanduser(cfg_file))
        try:
            with open(cfg_file, 'r') as stream:
                cfg_data = yaml.safe_load(stream)

            logger.debug('Successfully parsed YAML configuration from %s' % (
                cfg_file,
            ))

        except YAMLError as e:
            logger.debug('%s' % (str(e)))
            logger.error('Failed to parse YAML configuration from %s' % (
                cfg_file,
            ))
            return None

        except (IOError, OSError) as e:
            logger.debug('%s' % (str(e)))
            logger.error('Failed to access YAML configuration from %s' % (
                cfg_file,
            ))
            return None

        if not isinstance(cfg_data, dict):
            # We failed
            logger.error('Invalid YAML configuration structure in %s' % (
                cfg_file,
            ))
            return None

        # Default Configuration Starting Point
        _cfg_data = deepcopy(VALID_SETTINGS_ENTRY)

        servers = cfg_data.get(SERVER_LIST_KEY)
        if servers is None:
            logger.error('No [%s] entries defined in YAML configuration %s' % (
                SERVER_LIST_KEY,
                cfg_file,
            ))
            servers = []

        elif isinstance(servers, dict):
            # Treat as single server and convert to list attempting to be
            # user-friendly:
            servers = [servers]

        elif not isinstance(servers, (list, tuple)):
            logger.error(
                'Failed to interpret YAML server configuration from %s' % (
                    cfg_file,
                )
            )
            servers = []

        if isinstance(cfg_data.get(GLOBAL_KEY), dict):
            _cfg_data[GLOBAL_KEY].update(cfg_data[GLOBAL_KEY])

        for server in servers:
            if not isinstance(server, dict):
                logger.warning('Ignoring server entry %r' % (server, ))
                continue

            defaults = DEFAULT_SERVER_VARIABLES.copy()
            defaults.update(server)
            _cfg_data[SERVER_LIST_KEY].append(defaults)

        return _cfg_data

    def read(self, cfg_file):
        """
        Load our configuration from the file specified.

        Returns True if at least one server was successfully loaded.
        """
        self._is_valid = False

        cfg_data = self._read_yaml(cfg_file)
        if cfg_data is None:
            return False

        self.cfg_file = cfg_file
        self.cfg_data = cfg_data

        self.nntp_global = DEFAULT_GLOBAL_VARIABLES.copy()
        self.nntp_global['timeout'] = \
            parse_timeout(cfg_data[GLOBAL_KEY].get('timeout'))

        self.nntp_servers = []
        for server in cfg_data[SERVER_LIST_KEY]:
            if not server.get('host'):
                logger.error(
                    'A server entry in %s is missing a host; ignoring it.' % (
                        cfg_file,
                    ))
                continue

            entry = server.copy()
            entry['secure'] = parse_bool(server['secure'])
            entry['verify_cert'] = parse_bool(server['verify_cert'], True)
            entry['strict_list'] = parse_bool(server['strict_list'])
            entry['enabled'] = parse_bool(server['enabled'], True)
            entry['timeout'] = parse_timeout(
                server['timeout'], self.nntp_global['timeout'])

            if not entry['encoding']:
                entry['encoding'] = NNTP_DEFAULT_ENCODING

            try:
                entry['port'] = int(server['port'])

            except (TypeError, ValueError):
                # Default port
                entry['port'] = \
                    NNTP_SSL_PORT if entry['secure'] else NNTP_PORT

            self.nntp_servers.append(entry)

        logger.info('Loaded %d NNTP server(s) from %s' % (
            len(self.nntp_servers), cfg_file))

        self._is_valid = len(self.nntp_servers) > 0
        return self._is_valid

    def server(self):
        """
        Returns the configuration of the first enabled server or None if
        there isn't one.
        """
        return next((s for s in self.nntp_servers if s['enabled']), None)

    def __repr__(self):
        """
        Return a printable object
        """
        return '<NNTPSettings file="%s" servers=%d />' % (
            self.cfg_file, len(self.nntp_servers))
