#!/usr/bin/env python
"""Setuptools distribution file."""
import os
from setuptools import setup


def _get_here(fname):
    return os.path.join(os.path.dirname(__file__), fname)


def _get_long_description(fname, encoding='utf8'):
    return open(fname, 'r', encoding=encoding).read()


setup(name='telgate',
      version='0.1.0',
      license='ISC',
      description="asyncio gateway relaying raw TCP clients to a Telnet service",
      long_description=_get_long_description(fname=_get_here('README.rst')),
      packages=['telgate', 'telgate.tests'],
      package_data={'': ['README.rst'], },
      python_requires='>=3.8',
      extras_require={
          'test': ['pytest', 'pytest-asyncio', 'pexpect'],
      },
      entry_points={
         'console_scripts': [
             'telgate = telgate.server:main',
         ]},
      platforms='any',
      zip_safe=True,
      keywords=', '.join(('telnet', 'gateway', 'proxy', 'bbs', 'cp437',
                          'asyncio')),
      classifiers=['License :: OSI Approved :: ISC License (ISCL)',
                   'Programming Language :: Python :: 3',
                   'Intended Audience :: Developers',
                   'Development Status :: 4 - Beta',
                   'Topic :: System :: Networking',
                   'Topic :: Terminals :: Telnet',
                   'Topic :: Internet',
                   ],
      )
