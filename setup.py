#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# SetupTools Script
#
# Copyright (C) 2015 Chris Caron <lead2gold@gmail.com>
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

from setuptools import setup
from setuptools import find_packages


setup(
    name='nntpclient',
    version='0.0.1',
    description='A cancellable NNTP client built on gevent',
    long_description=open('README.md').read() + \
                        '\n\n' + open('HISTORY.rst').read(),
    long_description_content_type='text/markdown',
    url='https://github.com/caronc/nntpclient',
    keywords='usenet nntp client gevent',
    author='Chris Caron',
    author_email='lead2gold@gmail.com',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=open('requirements.txt').readlines(),
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.7',
    classifiers=(
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Communications :: Usenet News',
        'License :: OSI Approved :: '
        'GNU Lesser General Public License v3 (LGPLv3)',
    ),
)
