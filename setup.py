"""A setuptools based setup module for zofwd.
See:
https://packaging.python.org/en/latest/distributing.html
https://github.com/pypa/sampleproject
"""

import os
import re
from setuptools import setup, find_packages


HERE = os.path.abspath(os.path.dirname(__file__))
README_PATH = os.path.join(HERE, 'README.rst')
VERSION_PATH = os.path.join(HERE, 'zofwd', '__init__.py')


def _get_description(path):
    with open(path, encoding='utf-8') as afile:
        return afile.read()


def _get_version(path):
    with open(path, encoding='utf-8') as afile:
        regex = re.compile(r"(?m)__version__\s*=\s*'(\d+\.\d+\.\d+)'")
        return regex.search(afile.read()).group(1)


setup(
    name='zofwd',
    packages=find_packages(exclude=['tests']),
    version=_get_version(VERSION_PATH),
    license='MIT',

    description='Reactive forwarding core for OpenFlow controllers',
    long_description=_get_description(README_PATH),
    long_description_content_type='text/x-rst',
    keywords='openflow controller sdn forwarding',

    python_requires='>=3.10',

    # Dependencies
    install_requires=[
        # Imported by http submodule (status server).
        'aiohttp>=3.6',
        # Event counters and /metrics.
        'prometheus_client',
        # Shortest paths for the in-memory topology service.
        'networkx'
    ],
    extras_require={
        'test': ['pytest', 'pytest-asyncio']
    },

    entry_points={
        'console_scripts': ['zofwd-demo=zofwd.demo.linear:main']
    },

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: Unix',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking'
    ],

    zip_safe=True,
)
