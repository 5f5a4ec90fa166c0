#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Exceptions raised by the training core.

Each class also derives from the closest builtin exception, so callers catching
e.g. `ValueError` or `IndexError` keep working.

"""


class Word2VecError(Exception):
    """Base exception for all distw2v errors."""
    pass


class ConfigurationError(Word2VecError, ValueError):
    """An invalid training parameter, rejected before any pass over the corpus."""
    pass


class EmptyVocabularyError(Word2VecError, ValueError):
    """No word survived the `min_count` filter."""
    pass


class EmbeddingTableTooLargeError(Word2VecError, MemoryError):
    """The `vocab_size x vector_size` parameter tables would exceed the table size ceiling."""
    pass


class TreeTooDeepError(Word2VecError, RuntimeError):
    """A Huffman code came out longer than `MAX_CODE_LENGTH`."""
    pass


class IndexOutOfRange(Word2VecError, IndexError):
    """Row index outside of `[0, rows)` in a :class:`~distw2v.matutils.ChunkedMatrix`."""
    pass


class LengthMismatch(Word2VecError, ValueError):
    """A row vector whose length differs from the matrix column count."""
    pass
