#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""This module contains various general utility functions."""

import itertools
import logging
import numbers

import numpy as np
from smart_open import open  # noqa:F401


logger = logging.getLogger(__name__)

RULE_DEFAULT = 0
RULE_DISCARD = 1
RULE_KEEP = 2

_UINT32_MASK = 0xFFFFFFFF


def get_random_state(seed):
    """Generate :class:`numpy.random.RandomState` based on input seed.

    Parameters
    ----------
    seed : {None, int, :class:`numpy.random.RandomState`}
        Seed for random state. Integers of any size and sign are accepted: they are folded
        into two 32-bit words, so that seeds differing only in their high bits still give different streams.

    Returns
    -------
    :class:`numpy.random.RandomState`
        Random state.

    Raises
    ------
    ValueError
        If seed is not {None, int, RandomState}.

    """
    if seed is None or seed is np.random:
        return np.random.mtrand._rand
    if isinstance(seed, np.random.RandomState):
        return seed
    if isinstance(seed, (numbers.Integral, np.integer)):
        seed = int(seed) & 0xFFFFFFFFFFFFFFFF  # two's complement for negative seeds
        return np.random.RandomState([(seed >> 32) & _UINT32_MASK, seed & _UINT32_MASK])
    raise ValueError('%r cannot be used to seed a np.random.RandomState instance' % seed)


def any2unicode(text, encoding='utf8', errors='strict'):
    """Convert `text` (bytestring in given encoding or unicode) to unicode.

    Parameters
    ----------
    text : str or bytes
        Input text.
    errors : str, optional
        Error handling behaviour if `text` is a bytestring.
    encoding : str, optional
        Encoding of `text` if it is a bytestring.

    Returns
    -------
    str
        Unicode version of `text`.

    """
    if isinstance(text, str):
        return text
    return str(text, encoding, errors=errors)


to_unicode = any2unicode


def chunkize_serial(iterable, chunksize):
    """Give elements from the iterable in `chunksize`-ed lists.
    The last returned element may be smaller (if length of collection is not divisible by `chunksize`).

    Parameters
    ----------
    iterable : iterable of object
        Any iterable.
    chunksize : int
        Size of chunk from result.

    Yields
    ------
    list of object
        Groups based on `iterable`

    Examples
    --------
    .. sourcecode:: pycon

        >>> print(list(grouper(range(10), 3)))
        [[0, 1, 2], [3, 4, 5], [6, 7, 8], [9]]

    """
    it = iter(iterable)
    while True:
        wrapped_chunk = [list(itertools.islice(it, int(chunksize)))]
        if not wrapped_chunk[0]:
            break
        # memory opt: wrap the chunk and then pop(), to avoid leaving behind a dangling reference
        yield wrapped_chunk.pop()


grouper = chunkize_serial


def keep_vocab_item(word, count, min_count, trim_rule=None):
    """Should we keep `word` in the vocab or remove it?

    Parameters
    ----------
    word : str
        Input word.
    count : int
        Number of times that word appeared in a corpus.
    min_count : int
        Discard words with frequency smaller than this.
    trim_rule : function, optional
        Custom function to decide whether to keep or discard this word.
        If a custom `trim_rule` is not specified, the default behaviour is simply `count >= min_count`.
        Otherwise `trim_rule(word, count, min_count)` must return one of
        :attr:`RULE_DEFAULT`, :attr:`RULE_DISCARD` or :attr:`RULE_KEEP`.

    Returns
    -------
    bool
        True if `word` should stay, False otherwise.

    """
    default_res = count >= min_count

    if trim_rule is None:
        return default_res
    else:
        rule_res = trim_rule(word, count, min_count)
        if rule_res == RULE_KEEP:
            return True
        elif rule_res == RULE_DISCARD:
            return False
        else:
            return default_res
