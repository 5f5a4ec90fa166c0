#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - http://www.gnu.org/licenses/lgpl.html

"""
Automated tests for the Huffman tree construction.
"""

import logging
import unittest

import numpy as np
from testfixtures import log_capture

from distw2v.exceptions import TreeTooDeepError
from distw2v.models.huffman import create_binary_tree
from distw2v.models.vocab import Vocabulary, VocabWord


def make_vocab(counts):
    return Vocabulary(VocabWord(word='w%i' % i, count=count) for i, count in enumerate(counts))


def tree_edges(vocab):
    """Rebuild the tree edges `(internal node, bit) -> child` from the codes and paths of all words.

    A child is either the next internal node on the path, or the word itself at the end of the path.

    """
    edges = {}
    for vocab_word in vocab:
        for depth in range(vocab_word.codelen):
            key = (int(vocab_word.point[depth]), int(vocab_word.code[depth]))
            if depth + 1 < vocab_word.codelen:
                child = ('node', int(vocab_word.point[depth + 1]))
            else:
                child = ('word', vocab_word.word)
            if edges.setdefault(key, child) != child:
                raise AssertionError("edge %s leads both to %s and %s" % (key, edges[key], child))
    return edges


def decode(edges, root, code):
    """Walk `code` down from `root` along `edges`, return the word of the reached leaf."""
    node = ('node', root)
    for bit in code:
        node = edges[(node[1], int(bit))]
        if node[0] == 'word':
            return node[1]
    return None


class TestHuffmanTree(unittest.TestCase):
    def test_small_tree(self):
        vocab = make_vocab([4, 3, 2, 1])
        max_depth = create_binary_tree(vocab)
        self.assertEqual(max_depth, 3)
        self.assertEqual([list(w.code) for w in vocab], [[0], [1, 1], [1, 0, 1], [1, 0, 0]])
        self.assertEqual([list(w.point) for w in vocab], [[2], [2, 1], [2, 1, 0], [2, 1, 0]])
        self.assertEqual([w.codelen for w in vocab], [1, 2, 3, 3])
        self.assertEqual(vocab[0].code.dtype, np.uint8)
        self.assertEqual(vocab[0].point.dtype, np.uint32)

    def test_tree_properties(self):
        counts = [50, 40, 30, 20, 20, 10, 9, 5, 5, 3, 2, 1, 1, 1]
        vocab = make_vocab(counts)
        create_binary_tree(vocab)
        vocab_size = len(vocab)

        internal = set()
        for vocab_word in vocab:
            self.assertEqual(vocab_word.codelen, len(vocab_word.code))
            self.assertEqual(vocab_word.codelen, len(vocab_word.point))
            self.assertEqual(vocab_word.point[0], vocab_size - 2)  # every path starts at the root
            self.assertTrue(all(0 <= p < vocab_size - 1 for p in vocab_word.point))
            internal.update(int(p) for p in vocab_word.point)
        self.assertEqual(len(internal), vocab_size - 1)

        # prefix-free: no code is a prefix of another one
        codes = [tuple(w.code) for w in vocab]
        for i, first in enumerate(codes):
            for j, second in enumerate(codes):
                if i != j:
                    self.assertNotEqual(first, second[:len(first)])
        edges = tree_edges(vocab)
        self.assertEqual(len(edges), 2 * (vocab_size - 1))
        for vocab_word in vocab:
            self.assertEqual(decode(edges, vocab_size - 2, vocab_word.code), vocab_word.word)

        # codes sharing a prefix of length d walk through the same d + 1 internal nodes
        for first in vocab:
            for second in vocab:
                d = 0
                while d < min(first.codelen, second.codelen) and first.code[d] == second.code[d]:
                    d += 1
                if first is not second:
                    self.assertEqual(list(first.point[:d + 1]), list(second.point[:d + 1]))

        # more frequent words never get longer codes
        for first in vocab:
            for second in vocab:
                if first.count > second.count:
                    self.assertLessEqual(first.codelen, second.codelen)

    def test_equal_counts(self):
        vocab = make_vocab([1] * 1000)
        self.assertEqual(create_binary_tree(vocab), 10)
        edges = tree_edges(vocab)
        for vocab_word in vocab:
            self.assertEqual(decode(edges, len(vocab) - 2, vocab_word.code), vocab_word.word)

    def test_kraft_equality(self):
        vocab = make_vocab([7, 7, 5, 3, 3, 2, 1])
        create_binary_tree(vocab)
        self.assertAlmostEqual(sum(2.0 ** -w.codelen for w in vocab), 1.0)

    def test_two_words(self):
        vocab = make_vocab([2, 1])
        create_binary_tree(vocab)
        self.assertEqual([list(w.code) for w in vocab], [[1], [0]])
        self.assertEqual([list(w.point) for w in vocab], [[0], [0]])

    @log_capture()
    def test_single_word(self, loglines):
        vocab = make_vocab([5])
        self.assertEqual(create_binary_tree(vocab), 0)
        self.assertEqual(vocab[0].codelen, 0)
        self.assertEqual(len(vocab[0].point), 0)
        self.assertIn("nothing to train", str(loglines))

    def test_too_deep(self):
        self.assertRaises(TreeTooDeepError, create_binary_tree, make_vocab([4, 3, 2, 1]), 2)
        self.assertRaises(RuntimeError, create_binary_tree, make_vocab([4, 3, 2, 1]), 2)


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
