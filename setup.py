#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Run with::

    python ./setup.py install
"""

from pathlib import Path

from setuptools import find_packages, setup


# packages included for build-testing everywhere
core_testenv = [
    'pytest',
    'pytest-cov',
    'testfixtures',
]

NUMPY_STR = 'numpy >= 1.18.5'

install_requires = [
    NUMPY_STR,
    'scipy >= 1.7.0',
    'smart_open >= 1.8.1',
]

setup(
    name='distw2v',
    version='0.1.0.dev0',
    description='Data-parallel word2vec training (skip-gram, hierarchical softmax) over partitioned datasets',
    long_description=Path("README.md").read_text(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=['distw2v', 'distw2v.*']),
    package_data={'distw2v.test': ['test_data/*']},

    license='LGPL-2.1-only',

    keywords='word2vec, skip-gram, hierarchical softmax, distributed training, word embeddings',

    platforms='any',

    zip_safe=False,

    classifiers=[  # from https://pypi.org/classifiers/
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Science/Research',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Text Processing :: Linguistic',
    ],

    test_suite="distw2v.test",
    python_requires='>=3.8',
    install_requires=install_requires,
    extras_require={
        'test': core_testenv,
    },

    include_package_data=True,
)
