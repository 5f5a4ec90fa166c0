#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - http://www.gnu.org/licenses/lgpl.html

"""
Automated tests for checking various utils functions.
"""

import logging
import unittest

import numpy as np

from distw2v import utils


class TestGetRandomState(unittest.TestCase):
    def test_same_seed_same_stream(self):
        self.assertTrue(np.array_equal(utils.get_random_state(42).rand(5), utils.get_random_state(42).rand(5)))

    def test_high_bits_matter(self):
        # seeds equal modulo 2**32 must still give different streams
        first = utils.get_random_state(7).rand(5)
        second = utils.get_random_state(7 + (1 << 40)).rand(5)
        self.assertFalse(np.array_equal(first, second))

    def test_negative_seed(self):
        random = utils.get_random_state(-12345)
        self.assertTrue(isinstance(random, np.random.RandomState))
        self.assertTrue(np.array_equal(random.rand(3), utils.get_random_state(-12345).rand(3)))

    def test_passthrough(self):
        random = np.random.RandomState(1)
        self.assertIs(utils.get_random_state(random), random)

    def test_bad_seed(self):
        self.assertRaises(ValueError, utils.get_random_state, 'seed')


class TestChunkize(unittest.TestCase):
    def test_chunks(self):
        self.assertEqual(list(utils.chunkize_serial(range(10), 3)), [[0, 1, 2], [3, 4, 5], [6, 7, 8], [9]])
        self.assertEqual(list(utils.grouper(range(4), 2)), [[0, 1], [2, 3]])

    def test_empty(self):
        self.assertEqual(list(utils.chunkize_serial([], 3)), [])


class TestKeepVocabItem(unittest.TestCase):
    def test_default_rule(self):
        self.assertTrue(utils.keep_vocab_item('a', 5, 5))
        self.assertFalse(utils.keep_vocab_item('a', 4, 5))

    def test_trim_rule(self):
        def rule(word, count, min_count):
            if word == 'keep':
                return utils.RULE_KEEP
            if word == 'drop':
                return utils.RULE_DISCARD
            return utils.RULE_DEFAULT

        self.assertTrue(utils.keep_vocab_item('keep', 1, 5, trim_rule=rule))
        self.assertFalse(utils.keep_vocab_item('drop', 10, 5, trim_rule=rule))
        self.assertTrue(utils.keep_vocab_item('other', 10, 5, trim_rule=rule))
        self.assertFalse(utils.keep_vocab_item('other', 1, 5, trim_rule=rule))


class TestAny2Unicode(unittest.TestCase):
    def test_bytes(self):
        self.assertEqual(utils.any2unicode('žluťoučký'.encode('utf8')), 'žluťoučký')
        self.assertEqual(utils.to_unicode('kůň'), 'kůň')


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
