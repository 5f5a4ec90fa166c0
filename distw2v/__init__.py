"""
This package trains word2vec embeddings (skip-gram, hierarchical softmax) data-parallel over the
partitions of a dataset, merging per-partition updates after every iteration.

"""

__version__ = "0.1.0.dev0"

import logging

from distw2v import (  # noqa:F401
    dataflow,
    exceptions,
    interfaces,
    matutils,
    models,
    utils,
)

logger = logging.getLogger("distw2v")
if not logger.handlers:  # To ensure reload() doesn't add another one
    logger.addHandler(logging.NullHandler())
