#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Huffman tree over vocabulary counts, used as the output layer of hierarchical softmax.

Frequent words get shorter binary codes. Because the vocabulary is already sorted by descending count,
the tree is built in linear time without a priority queue: leaves are scanned from the rarest end, newly
created internal nodes are scanned in creation order (their counts never decrease), and each merge step
takes the two smallest of the current candidates.

Nodes live in flat arrays addressed by integer id: leaves are `[0, vocab_size)`, internal nodes
`[vocab_size, 2 * vocab_size - 1)` in order of creation, the root being the last one.

"""

import logging

import numpy as np

from distw2v.exceptions import TreeTooDeepError


logger = logging.getLogger(__name__)

#: Longest code the training routines accept.
MAX_CODE_LENGTH = 40

_NO_NODE = np.iinfo(np.int64).max  # count of internal nodes not created yet


def _pop_smallest(count, pos1, pos2):
    """Pick the smaller of the leaf candidate `pos1` and the internal node candidate `pos2`."""
    if pos1 >= 0 and count[pos1] < count[pos2]:
        return pos1, pos1 - 1, pos2
    return pos2, pos1, pos2 + 1


def create_binary_tree(vocab, max_code_length=MAX_CODE_LENGTH):
    """Assign a Huffman code to each word of `vocab`, in place.

    Sets `code` (array of 0/1 bits, root first), `point` (ids of the internal nodes on the root-to-leaf
    path, root first, counted from `vocab_size` so they index rows of `syn1` directly) and `codelen`
    on each :class:`~distw2v.models.vocab.VocabWord`.

    Parameters
    ----------
    vocab : :class:`~distw2v.models.vocab.Vocabulary`
        Words sorted by descending count.
    max_code_length : int, optional
        Refuse codes longer than this.

    Returns
    -------
    int
        Maximum code length (= tree depth).

    Raises
    ------
    :class:`~distw2v.exceptions.TreeTooDeepError`
        If some code is longer than `max_code_length`.

    """
    vocab_size = len(vocab)
    logger.info("constructing a huffman tree from %i words", vocab_size)
    if vocab_size < 2:
        logger.warning("vocabulary of %i word(s) gives a tree without edges; there is nothing to train", vocab_size)
        for vocab_word in vocab:
            vocab_word.code = np.zeros(0, dtype=np.uint8)
            vocab_word.point = np.zeros(0, dtype=np.uint32)
            vocab_word.codelen = 0
        return 0

    num_nodes = 2 * vocab_size - 1
    count = np.full(num_nodes, _NO_NODE, dtype=np.int64)
    count[:vocab_size] = [vocab_word.count for vocab_word in vocab]
    parent = np.zeros(num_nodes, dtype=np.int64)
    binary = np.zeros(num_nodes, dtype=np.uint8)

    pos1, pos2 = vocab_size - 1, vocab_size
    for a in range(vocab_size - 1):
        min1, pos1, pos2 = _pop_smallest(count, pos1, pos2)
        min2, pos1, pos2 = _pop_smallest(count, pos1, pos2)
        count[vocab_size + a] = count[min1] + count[min2]
        parent[min1] = vocab_size + a
        parent[min2] = vocab_size + a
        binary[min2] = 1

    # walk from each leaf up to the root, then store the path root first
    root = num_nodes - 1
    max_depth = 0
    for index, vocab_word in enumerate(vocab):
        codes, points = [], []
        node = index
        while node != root:
            codes.append(binary[node])
            node = parent[node]
            points.append(node - vocab_size)
        if len(codes) > max_code_length:
            raise TreeTooDeepError(
                "word %r got a huffman code of length %i, longer than the maximum %i"
                % (vocab_word.word, len(codes), max_code_length)
            )
        vocab_word.code = np.array(codes[::-1], dtype=np.uint8)
        vocab_word.point = np.array(points[::-1], dtype=np.uint32)
        vocab_word.codelen = len(codes)
        max_depth = max(len(codes), max_depth)

    logger.info("built huffman tree with maximum node depth %i", max_depth)
    return max_depth
