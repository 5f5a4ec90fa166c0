#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Vocabulary learning: count words, drop the rare ones, number the rest by descending frequency.

The counting runs as a keyed reduce over a partitioned dataset of words, so it scales with the execution
engine (see :mod:`distw2v.interfaces`); only the surviving `(word, count)` pairs travel back to the
coordinator.

.. sourcecode:: pycon

    >>> from distw2v.dataflow import LocalContext
    >>> from distw2v.models.vocab import build_vocab
    >>>
    >>> words = LocalContext().parallelize("the cat sat the dog sat".split())
    >>> vocab = build_vocab(words, min_count=1)
    >>> [(w.word, w.count) for w in vocab]
    [('the', 2), ('sat', 2), ('cat', 1), ('dog', 1)]
    >>> vocab.train_words_count
    6

"""

import logging
import operator

import numpy as np

from distw2v import utils
from distw2v.exceptions import EmptyVocabularyError


logger = logging.getLogger(__name__)


class VocabWord(object):
    """A single vocabulary item, used internally for collecting per-word frequency and Huffman tree
    information (`code` = bits along the root-to-leaf path, `point` = internal node ids along that path).

    """
    def __init__(self, **kwargs):
        self.count = 0
        self.code = np.zeros(0, dtype=np.uint8)
        self.point = np.zeros(0, dtype=np.uint32)
        self.codelen = 0
        self.__dict__.update(kwargs)

    def __str__(self):
        vals = ['%s:%r' % (key, self.__dict__[key]) for key in sorted(self.__dict__) if not key.startswith('_')]
        return "%s(%s)" % (self.__class__.__name__, ', '.join(vals))

    __repr__ = __str__


class Vocabulary(object):
    """Ordered sequence of :class:`VocabWord`, plus the `word -> index` lookup built from that order.

    Index `i` of a word is its row in the input embedding table `syn0`.

    """
    def __init__(self, words):
        self.words = list(words)
        self.word_index = {}
        self.train_words_count = 0
        for index, vocab_word in enumerate(self.words):
            self.word_index[vocab_word.word] = index
            self.train_words_count += vocab_word.count

    def __len__(self):
        return len(self.words)

    def __iter__(self):
        return iter(self.words)

    def __getitem__(self, index):
        return self.words[index]

    def __contains__(self, word):
        return word in self.word_index

    def index(self, word):
        """Get the index of `word`, raising KeyError for unknown words."""
        try:
            return self.word_index[word]
        except KeyError:
            raise KeyError("word '%s' not in vocabulary" % word)

    @property
    def index_to_word(self):
        return [vocab_word.word for vocab_word in self.words]

    def __str__(self):
        return "%s(size=%i, train_words_count=%i)" % (
            self.__class__.__name__, len(self.words), self.train_words_count,
        )


def build_vocab(words, min_count, trim_rule=None):
    """Learn a vocabulary from a dataset of words.

    Parameters
    ----------
    words : :class:`~distw2v.interfaces.DatasetABC`
        Partitioned dataset of word tokens (str).
    min_count : int
        Ignore all words with total frequency lower than this.
    trim_rule : function, optional
        Vocabulary trimming rule, see :func:`~distw2v.utils.keep_vocab_item`.

    Returns
    -------
    :class:`Vocabulary`
        Words sorted by descending count. Ties keep the order in which the keyed reduce produced them.

    Raises
    ------
    :class:`~distw2v.exceptions.EmptyVocabularyError`
        If no word survives the `min_count` filter.

    """
    logger.info("collecting all words and their counts")
    all_counts = words.map(lambda word: (word, 1)).reduce_by_key(operator.add)
    counts = all_counts \
        .filter(lambda item: utils.keep_vocab_item(item[0], item[1], min_count, trim_rule=trim_rule)) \
        .collect()
    counts = sorted(counts, key=operator.itemgetter(1), reverse=True)  # stable: ties keep reduce order

    if not counts:
        raise EmptyVocabularyError(
            "The vocabulary size should be > 0. You may need to check the setting of min_count=%s, "
            "which could be large enough to remove all your words in sentences." % min_count
        )

    vocab = Vocabulary(VocabWord(word=word, count=count) for word, count in counts)
    logger.info(
        "min_count=%i retains %i unique words, drops %i", min_count, len(vocab), all_counts.count() - len(vocab),
    )
    logger.info("vocab_size = %i, train_words_count = %i", len(vocab), vocab.train_words_count)
    return vocab
