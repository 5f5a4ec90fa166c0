#!/usr/bin/env python
# encoding: utf-8

"""Module contains common utilities used in automated code tests for distw2v modules.

Attributes:
-----------
module_path : str
    Full path to this module directory.

common_texts : list of list of str
    Toy dataset.


Examples:
---------
Train on the toy dataset:

>>> from distw2v.models import Word2Vec
>>> from distw2v.test.utils import common_texts
>>>
>>> vectors = Word2Vec(min_count=1, vector_size=10, seed=1).fit(common_texts)

The same toy set lives, one sentence per line, in the test data directory.

>>> from distw2v.test.utils import datapath
>>>
>>> with open(datapath("testcorpus.txt")) as f:
...     texts = [line.strip().split() for line in f]
>>> print(texts[0])
['human', 'interface', 'computer']

"""

import contextlib
import tempfile
import os
import shutil

module_path = os.path.dirname(__file__)  # needed because sample data files are located in the same folder


def datapath(fname):
    """Get full path for file `fname` in test data directory placed in this module directory.

    Parameters
    ----------
    fname : str
        Name of file.

    Returns
    -------
    str
        Full path to `fname` in test_data folder.

    """
    return os.path.join(module_path, 'test_data', fname)


@contextlib.contextmanager
def temporary_file(name=""):
    """This context manager creates file `name` in temporary directory and returns its full path.
    Temporary directory with included files will be deleted at the end of context. Note, it won't create file.

    Parameters
    ----------
    name : str
        Filename.

    Yields
    ------
    str
        Path to file `name` in temporary directory.

    """
    tmp = tempfile.mkdtemp()
    try:
        yield os.path.join(tmp, name)
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


# set up vars used in testing ("Deerwester" from the web tutorial)
common_texts = [
    ['human', 'interface', 'computer'],
    ['survey', 'user', 'computer', 'system', 'response', 'time'],
    ['eps', 'user', 'interface', 'system'],
    ['system', 'human', 'system', 'eps'],
    ['user', 'response', 'time'],
    ['trees'],
    ['graph', 'trees'],
    ['graph', 'minors', 'trees'],
    ['graph', 'minors', 'survey']
]
