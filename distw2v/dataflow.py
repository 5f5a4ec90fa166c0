#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""In-process implementation of the execution interfaces from :mod:`distw2v.interfaces`.

Partitions are plain lists, processed one after another in partition order, in the calling thread.
Every operation is deterministic: the same input always lands in the same partitions, and keyed reduces
combine values in partition order. This makes training runs reproducible for a given seed and
partition count.

.. sourcecode:: pycon

    >>> from distw2v.dataflow import LocalContext
    >>> sc = LocalContext()
    >>> words = sc.parallelize(['a', 'b', 'a'], num_partitions=2)
    >>> sorted(words.map(lambda w: (w, 1)).reduce_by_key(lambda x, y: x + y).collect())
    [('a', 2), ('b', 1)]

"""

import copy
import itertools
import logging

from distw2v import interfaces


logger = logging.getLogger(__name__)


class LocalBroadcast(interfaces.BroadcastABC):
    """Snapshot of a value, taken at publication time.

    Later changes to the original object are not visible through :attr:`value`.

    """
    def __init__(self, value, broadcast_id, context=None):
        self._value = copy.deepcopy(value)
        self.broadcast_id = broadcast_id
        self.context = context
        self.destroyed = False

    @property
    def value(self):
        if self.destroyed:
            raise RuntimeError("broadcast #%i was already destroyed" % self.broadcast_id)
        return self._value

    def unpersist(self):
        # there are no worker-side copies to drop in a single process
        logger.debug("unpersisting broadcast #%i", self.broadcast_id)

    def destroy(self):
        logger.debug("destroying broadcast #%i", self.broadcast_id)
        self.destroyed = True
        self._value = None
        if self.context is not None:
            self.context._released(self)

    def __str__(self):
        return "%s(id=%i, destroyed=%s)" % (self.__class__.__name__, self.broadcast_id, self.destroyed)


class LocalDataset(interfaces.DatasetABC):
    """Partitioned collection of records held in memory as a list of lists."""
    def __init__(self, partitions, context=None):
        self.partitions = [list(partition) for partition in partitions]
        if not self.partitions:
            self.partitions = [[]]
        self.context = context
        self.is_cached = False

    @property
    def num_partitions(self):
        return len(self.partitions)

    def map_partitions_with_index(self, func):
        return LocalDataset(
            (list(func(index, iter(partition))) for index, partition in enumerate(self.partitions)),
            context=self.context,
        )

    def repartition(self, num_partitions):
        """Deal the records round-robin, in their current order, over `num_partitions` partitions."""
        num_partitions = int(num_partitions)
        if num_partitions <= 0:
            raise ValueError("number of partitions must be positive, got %i" % num_partitions)
        partitions = [[] for _ in range(num_partitions)]
        for record_no, record in enumerate(itertools.chain.from_iterable(self.partitions)):
            partitions[record_no % num_partitions].append(record)
        return LocalDataset(partitions, context=self.context)

    def reduce_by_key(self, func):
        """Combine values per key.

        Values are combined in partition order, and within a partition in record order. Output keys keep the
        order of their first appearance, split into contiguous runs over the same number of partitions.

        """
        combined = {}
        for partition in self.partitions:
            for key, value in partition:
                if key in combined:
                    combined[key] = func(combined[key], value)
                else:
                    combined[key] = value
        items = list(combined.items())
        num_partitions = self.num_partitions
        per_partition = -(-len(items) // num_partitions)  # ceil
        return LocalDataset(
            (items[i * per_partition:(i + 1) * per_partition] for i in range(num_partitions)),
            context=self.context,
        )

    def collect(self):
        return list(itertools.chain.from_iterable(self.partitions))

    def count(self):
        return sum(len(partition) for partition in self.partitions)

    def cache(self):
        self.is_cached = True
        return self

    def unpersist(self):
        self.is_cached = False
        return self

    def __iter__(self):
        return itertools.chain.from_iterable(self.partitions)

    def __str__(self):
        return "%s(partitions=%i, records=%i)" % (self.__class__.__name__, self.num_partitions, self.count())


class LocalContext(interfaces.ContextABC):
    """Execution engine that runs everything in the calling process.

    Parameters
    ----------
    default_parallelism : int, optional
        Number of partitions used by :meth:`parallelize` when none is given.

    """
    def __init__(self, default_parallelism=1):
        self.default_parallelism = int(default_parallelism)
        self._broadcast_ids = itertools.count()
        self._live_broadcasts = {}

    def parallelize(self, data, num_partitions=None):
        """Split `data` into contiguous slices, one per partition."""
        data = list(data)
        num_partitions = int(num_partitions or self.default_parallelism)
        if num_partitions <= 0:
            raise ValueError("number of partitions must be positive, got %i" % num_partitions)
        partitions = [
            data[len(data) * i // num_partitions: len(data) * (i + 1) // num_partitions]
            for i in range(num_partitions)
        ]
        return LocalDataset(partitions, context=self)

    def broadcast(self, value):
        bc = LocalBroadcast(value, next(self._broadcast_ids), context=self)
        self._live_broadcasts[bc.broadcast_id] = bc
        logger.debug("published broadcast #%i", bc.broadcast_id)
        return bc

    def _released(self, bc):
        self._live_broadcasts.pop(bc.broadcast_id, None)

    @property
    def live_broadcasts(self):
        """Broadcasts published through this context and not destroyed yet."""
        return list(self._live_broadcasts.values())
