#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Basic interfaces between the training core and the engine that executes it.

The training core in :mod:`distw2v.models.word2vec` never touches worker processes, network or storage
directly. All it needs is:

* partitioned collections of opaque records, processed partition by partition with the partition index
  visible to the processing function (:class:`DatasetABC`),
* a way to publish a read-only value to all partitions and release it later (:class:`BroadcastABC`),
* a keyed reduce that combines records sharing a key and hands the result back to the coordinator.

The interfaces are realized as abstract base classes. :mod:`distw2v.dataflow` contains an in-process
implementation; a cluster engine plugs in by implementing the same methods.

"""

import logging


logger = logging.getLogger(__name__)


class BroadcastABC(object):
    """A value published once by the coordinator and read by every partition.

    Partitions must treat :attr:`value` as read-only.

    """
    @property
    def value(self):
        """The published value."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def unpersist(self):
        """Drop cached copies held by the workers; the value can still be read (and re-sent) afterwards."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def destroy(self):
        """Release the value for good. Reading :attr:`value` afterwards is an error."""
        raise NotImplementedError('cannot instantiate abstract base class')


class DatasetABC(object):
    """A collection of records split into a fixed number of partitions.

    All transformations return a new dataset and leave the original untouched.

    """
    @property
    def num_partitions(self):
        """Number of partitions."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def map_partitions_with_index(self, func):
        """Apply `func(partition_index, records_iterator)` to each partition.

        `func` returns an iterable of output records, which form the output partition of the same index.

        """
        raise NotImplementedError('cannot instantiate abstract base class')

    def map(self, func):
        """Apply `func` to every record."""
        return self.map_partitions_with_index(lambda index, records: (func(record) for record in records))

    def flat_map(self, func):
        """Apply `func` to every record and concatenate the resulting iterables."""
        return self.map_partitions_with_index(
            lambda index, records: (out for record in records for out in func(record))
        )

    def filter(self, func):
        """Keep only records for which `func(record)` is true."""
        return self.map_partitions_with_index(lambda index, records: (r for r in records if func(r)))

    def repartition(self, num_partitions):
        """Redistribute the records over `num_partitions` partitions."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def reduce_by_key(self, func):
        """Combine the values of all `(key, value)` records sharing the same key.

        `func(value1, value2)` must be associative and commutative. The result is a dataset of
        `(key, combined_value)` records, one per distinct key.

        """
        raise NotImplementedError('cannot instantiate abstract base class')

    def collect(self):
        """Bring all records back to the coordinator, as a list."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def count(self):
        """Number of records."""
        return len(self.collect())

    def cache(self):
        """Keep the records around for reuse across several passes. Returns self."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def unpersist(self):
        """Drop records kept by :meth:`cache`."""
        raise NotImplementedError('cannot instantiate abstract base class')


class ContextABC(object):
    """Entry point of an execution engine."""
    def parallelize(self, data, num_partitions=None):
        """Turn a local iterable of records into a :class:`DatasetABC`."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def broadcast(self, value):
        """Publish `value` to all partitions, as a :class:`BroadcastABC`."""
        raise NotImplementedError('cannot instantiate abstract base class')
