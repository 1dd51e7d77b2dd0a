#!/usr/bin/env python3
"""
Setup script for bittrace
"""

from setuptools import setup, find_packages
import os
import sys

HERE = os.path.dirname(os.path.abspath(__file__))

# Import the version without importing the package
sys.path.insert(0, os.path.join(HERE, 'bittrace'))
from __version__ import __version__


# README as long_description
def read_file(filename):
    with open(os.path.join(HERE, filename), encoding='utf-8') as f:
        return f.read()


setup(
    name='bittrace',
    version=__version__,
    description='Bitmask-gated debug tracing of frames and conditional lines to stderr',
    long_description=read_file('README.md'),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'docs']),
    python_requires='>=3.8',
    install_requires=[],
    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
    },
    entry_points={
        'console_scripts': [
            'bittrace=bittrace.cli:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Debuggers',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
    ],
)
