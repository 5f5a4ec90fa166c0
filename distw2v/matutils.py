#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Math helper functions: block-chunked dense matrices and the sigmoid lookup table."""

import logging
import math
import operator

import numpy as np
from numpy import float32 as REAL
from scipy.special import expit

from distw2v.exceptions import EmbeddingTableTooLargeError, IndexOutOfRange, LengthMismatch


logger = logging.getLogger(__name__)

#: Maximum number of elements held by one block of a :class:`ChunkedMatrix`.
BLOCK_SIZE = 200 * 1024

#: Sigmoid lookup table resolution and domain.
EXP_TABLE_SIZE = 1000
MAX_EXP = 6

#: Ceiling, in bytes, on the combined size of the two parameter tables.
MAX_TABLE_SIZE = 2**31 - 1


def create_exp_table(size=EXP_TABLE_SIZE, max_exp=MAX_EXP):
    """Precompute `sigmoid(x)` for `x` evenly spaced over `[-max_exp, max_exp)`.

    Parameters
    ----------
    size : int, optional
        Number of table entries.
    max_exp : int, optional
        Half-width of the tabulated domain.

    Returns
    -------
    numpy.ndarray
        Array of `size` float32 values, entry `i` holds `sigmoid((2 * i / size - 1) * max_exp)`.

    """
    x = (2.0 * np.arange(size, dtype=np.float64) / size - 1.0) * max_exp
    return expit(x).astype(REAL)


def check_table_size(vocab_size, vector_size, itemsize=2 * np.dtype(REAL).itemsize, limit=MAX_TABLE_SIZE):
    """Refuse `vocab_size x vector_size` parameter tables beyond `limit` bytes, before allocating anything.

    The default `itemsize` counts one float32 in `syn0` plus one in `syn1`.

    Raises
    ------
    :class:`~distw2v.exceptions.EmbeddingTableTooLargeError`
        If the tables would be too large.

    """
    nbytes = int(vocab_size) * int(vector_size) * int(itemsize)
    if nbytes >= limit:
        raise EmbeddingTableTooLargeError(
            "Please increase min_count or decrease vector_size to avoid running out of memory: "
            "vocab_size * vector_size, which is %i * %i for now, should stay below %i."
            % (vocab_size, vector_size, limit // itemsize)
        )
    return nbytes


class ChunkedMatrix(object):
    """Dense `rows x columns` matrix stored as a list of bounded-size blocks.

    Each block is a flat, contiguous array holding a whole number of rows, so that no single allocation grows
    beyond `block_size` elements no matter how large the matrix is. A row never straddles two blocks, which
    keeps row lookups O(1)::

        block = row_index // rows_per_block
        offset = (row_index % rows_per_block) * columns

    Examples
    --------
    .. sourcecode:: pycon

        >>> from distw2v.matutils import ChunkedMatrix
        >>> m = ChunkedMatrix(5, 3)
        >>> m.update(4, [1.0, 2.0, 3.0])
        >>> m.copy_row(4)
        array([1., 2., 3.], dtype=float32)

    """
    def __init__(self, rows, columns, dtype=REAL, block_size=BLOCK_SIZE):
        """

        Parameters
        ----------
        rows : int
            Number of rows.
        columns : int
            Number of columns, i.e. length of every row.
        dtype : numpy.dtype, optional
            Element type.
        block_size : int, optional
            Element budget of a single block. Rows wider than the budget get a block each.

        """
        rows, columns = int(rows), int(columns)
        if rows < 0:
            raise ValueError("number of rows must be non-negative, got %i" % rows)
        if columns <= 0:
            raise ValueError("number of columns must be positive, got %i" % columns)
        self.rows = rows
        self.columns = columns
        self.dtype = np.dtype(dtype)
        self.rows_per_block = max(1, int(block_size) // columns)

        num_blocks = int(math.ceil(rows / self.rows_per_block))
        self.blocks = []
        for block_no in range(num_blocks):
            block_rows = min(self.rows_per_block, rows - block_no * self.rows_per_block)
            self.blocks.append(np.zeros(block_rows * columns, dtype=self.dtype))

    @classmethod
    def fill(cls, rows, columns, elem, **kwargs):
        """Create a matrix with every element set to a fresh `elem()` call.

        `elem` is called once per element, block by block and row by row within a block.

        """
        ret = cls(rows, columns, **kwargs)
        for block in ret.blocks:
            block[:] = np.fromiter((elem() for _ in range(block.size)), dtype=ret.dtype, count=block.size)
        return ret

    @classmethod
    def fill_blocks(cls, rows, columns, fill_block, **kwargs):
        """Like :meth:`fill`, but `fill_block(size)` produces all `size` values of a block at once.

        Use this with vectorized random generators, e.g. `lambda size: random.rand(size)`, which draw
        the same sequence as `size` consecutive scalar draws.

        """
        ret = cls(rows, columns, **kwargs)
        for block in ret.blocks:
            block[:] = fill_block(block.size)
        return ret

    def __len__(self):
        return self.rows

    @property
    def shape(self):
        return self.rows, self.columns

    @property
    def num_blocks(self):
        return len(self.blocks)

    def locate(self, row_index):
        """Find where row `row_index` lives.

        Returns
        -------
        (numpy.ndarray, int, int)
            The block holding the row, and the row's start and end offsets inside that block.

        Raises
        ------
        :class:`~distw2v.exceptions.IndexOutOfRange`
            If `row_index` is outside `[0, rows)`.

        """
        row_index = operator.index(row_index)
        if row_index < 0 or row_index >= self.rows:
            raise IndexOutOfRange("row index %i out of range for matrix with %i rows" % (row_index, self.rows))
        start = (row_index % self.rows_per_block) * self.columns
        return self.blocks[row_index // self.rows_per_block], start, start + self.columns

    def row(self, row_index):
        """Get a writeable view of row `row_index`, no copying."""
        block, start, end = self.locate(row_index)
        return block[start:end]

    __getitem__ = row

    def copy_row(self, row_index):
        """Get an owned copy of row `row_index`."""
        return self.row(row_index).copy()

    def update(self, row_index, values):
        """Overwrite row `row_index` with `values`.

        Raises
        ------
        :class:`~distw2v.exceptions.LengthMismatch`
            If `values` does not have exactly `columns` elements.
        :class:`~distw2v.exceptions.IndexOutOfRange`
            If `row_index` is outside `[0, rows)`.

        """
        values = np.asarray(values, dtype=self.dtype)
        if values.ndim != 1 or values.shape[0] != self.columns:
            raise LengthMismatch(
                "row of length %i doesn't fit a matrix with %i columns" % (values.size, self.columns)
            )
        block, start, end = self.locate(row_index)
        block[start:end] = values

    def take(self, row_indices):
        """Gather rows `row_indices` into a new 2d array, one output row per index."""
        out = np.empty((len(row_indices), self.columns), dtype=self.dtype)
        for i, row_index in enumerate(row_indices):
            out[i] = self.row(row_index)
        return out

    def copy(self):
        """Deep copy: same shape and block layout, independent storage."""
        ret = self.__class__.__new__(self.__class__)
        ret.__dict__.update(self.__dict__)
        ret.blocks = [block.copy() for block in self.blocks]
        return ret

    def to_array(self):
        """Concatenate all blocks into one contiguous `rows x columns` array."""
        if not self.blocks:
            return np.zeros((0, self.columns), dtype=self.dtype)
        return np.concatenate(self.blocks).reshape(self.rows, self.columns)

    def __str__(self):
        return "%s(rows=%i, columns=%i, blocks=%i)" % (
            self.__class__.__name__, self.rows, self.columns, len(self.blocks),
        )
