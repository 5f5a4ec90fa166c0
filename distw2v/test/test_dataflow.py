#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - http://www.gnu.org/licenses/lgpl.html

"""
Automated tests for the in-process execution engine.
"""

import logging
import operator
import unittest

import numpy as np

from distw2v import interfaces
from distw2v.dataflow import LocalContext, LocalDataset
from distw2v.matutils import ChunkedMatrix


class TestLocalDataset(unittest.TestCase):
    def setUp(self):
        self.sc = LocalContext()

    def test_parallelize(self):
        data = self.sc.parallelize(range(10), num_partitions=3)
        self.assertTrue(isinstance(data, interfaces.DatasetABC))
        self.assertEqual(data.num_partitions, 3)
        self.assertEqual(data.partitions, [[0, 1, 2], [3, 4, 5], [6, 7, 8, 9]])
        self.assertEqual(data.collect(), list(range(10)))

    def test_parallelize_default(self):
        self.assertEqual(self.sc.parallelize('abc').num_partitions, 1)
        self.assertEqual(LocalContext(default_parallelism=4).parallelize('abc').num_partitions, 4)
        self.assertRaises(ValueError, self.sc.parallelize, 'abc', -1)

    def test_empty(self):
        self.assertEqual(LocalDataset([]).num_partitions, 1)
        self.assertEqual(LocalDataset([]).collect(), [])

    def test_partition_index(self):
        data = self.sc.parallelize(range(6), num_partitions=3)
        indexed = data.map_partitions_with_index(lambda index, records: ((index, r) for r in records))
        self.assertEqual(indexed.collect(), [(0, 0), (0, 1), (1, 2), (1, 3), (2, 4), (2, 5)])

    def test_map_filter_flat_map(self):
        data = self.sc.parallelize(['a b', 'c', 'd e f'], num_partitions=2)
        self.assertEqual(data.flat_map(str.split).collect(), ['a', 'b', 'c', 'd', 'e', 'f'])
        self.assertEqual(data.map(len).collect(), [3, 1, 5])
        self.assertEqual(data.filter(lambda s: ' ' in s).collect(), ['a b', 'd e f'])
        self.assertEqual(data.flat_map(str.split).num_partitions, 2)

    def test_repartition_round_robin(self):
        data = self.sc.parallelize(range(7), num_partitions=2).repartition(3)
        self.assertEqual(data.partitions, [[0, 3, 6], [1, 4], [2, 5]])
        self.assertEqual(data.count(), 7)
        self.assertRaises(ValueError, data.repartition, 0)

    def test_repartition_more_than_records(self):
        data = self.sc.parallelize([1], num_partitions=1).repartition(3)
        self.assertEqual(data.partitions, [[1], [], []])

    def test_reduce_by_key(self):
        data = self.sc.parallelize([('b', 1), ('a', 2), ('b', 3), ('c', 4), ('a', 5)], num_partitions=2)
        reduced = data.reduce_by_key(operator.add)
        self.assertEqual(reduced.num_partitions, 2)
        self.assertEqual(reduced.collect(), [('b', 4), ('a', 7), ('c', 4)])

    def test_reduce_by_key_arrays(self):
        data = self.sc.parallelize([(0, np.ones(2)), (1, np.ones(2)), (0, np.ones(2) * 2)], num_partitions=3)
        reduced = dict(data.reduce_by_key(operator.add).collect())
        self.assertTrue(np.array_equal(reduced[0], [3.0, 3.0]))
        self.assertTrue(np.array_equal(reduced[1], [1.0, 1.0]))

    def test_cache(self):
        data = self.sc.parallelize(range(3))
        self.assertIs(data.cache(), data)
        self.assertTrue(data.is_cached)
        data.unpersist()
        self.assertFalse(data.is_cached)
        self.assertEqual(list(data), [0, 1, 2])


class TestLocalBroadcast(unittest.TestCase):
    def setUp(self):
        self.sc = LocalContext()

    def test_snapshot(self):
        m = ChunkedMatrix(3, 2)
        bc = self.sc.broadcast(m)
        m.update(0, [1.0, 1.0])
        self.assertTrue(np.array_equal(bc.value[0], [0.0, 0.0]))

    def test_destroy(self):
        bc = self.sc.broadcast([1, 2, 3])
        self.assertEqual(self.sc.live_broadcasts, [bc])
        bc.unpersist()
        self.assertEqual(bc.value, [1, 2, 3])
        bc.destroy()
        self.assertEqual(self.sc.live_broadcasts, [])
        with self.assertRaises(RuntimeError):
            bc.value

    def test_ids(self):
        first, second = self.sc.broadcast(1), self.sc.broadcast(2)
        self.assertNotEqual(first.broadcast_id, second.broadcast_id)


class TestAbstract(unittest.TestCase):
    def test_not_implemented(self):
        self.assertRaises(NotImplementedError, interfaces.DatasetABC().collect)
        self.assertRaises(NotImplementedError, interfaces.ContextABC().broadcast, 1)
        self.assertRaises(NotImplementedError, interfaces.BroadcastABC().destroy)


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
