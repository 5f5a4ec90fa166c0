#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2018 RaRe Technologies s.r.o.
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Introduction
============

This module trains word2vec embeddings with the skip-gram model and hierarchical softmax, data-parallel
over the partitions of a dataset: `Tomas Mikolov et al: Efficient Estimation of Word Representations
in Vector Space <https://arxiv.org/pdf/1301.3781.pdf>`_, `Tomas Mikolov et al: Distributed Representations of Words
and Phrases and their Compositionality <https://arxiv.org/abs/1310.4546>`_.

How training is distributed
===========================

The coordinator owns the two parameter tables, `syn0` (input word vectors) and `syn1` (vectors of the
internal Huffman tree nodes). Each iteration `k = 1..iterations`:

#. broadcasts read-only snapshots of both tables,
#. lets every partition train on its own copy of the snapshots, with learning rate starting at `alpha / k`,
#. collects, per touched row, the difference between the partition's copy and the snapshot,
#. sums these differences per row across partitions (a keyed reduce; no averaging),
#. writes `snapshot + sum of differences` back into the global tables, leaving untouched rows alone,
#. releases the snapshots.

Iterations run strictly one after the other. Within an iteration, partitions never share memory.

The execution engine is pluggable, see :mod:`distw2v.interfaces`. By default everything runs in-process
with :class:`~distw2v.dataflow.LocalContext`.

Usage examples
==============

.. sourcecode:: pycon

    >>> from distw2v.models import Word2Vec
    >>> from distw2v.test.utils import common_texts
    >>>
    >>> model = Word2Vec(vector_size=10, min_count=1, num_partitions=2, iterations=2, seed=42)
    >>> vectors = model.fit(common_texts)
    >>> word, vector = vectors[0]
    >>> vector.shape
    (10,)

The training corpus can be streamed from disk with :class:`LineSentence`:

.. sourcecode:: pycon

    >>> from distw2v.models.word2vec import LineSentence
    >>> from distw2v.test.utils import datapath
    >>>
    >>> vectors = Word2Vec(min_count=1).fit(LineSentence(datapath('testcorpus.txt')))

"""

import functools
import itertools
import logging
from collections import namedtuple
from collections.abc import Iterable
from timeit import default_timer
from types import GeneratorType

import numpy as np
from numpy import float32 as REAL

from distw2v import interfaces, matutils, utils
from distw2v.dataflow import LocalContext
from distw2v.exceptions import ConfigurationError
from distw2v.matutils import EXP_TABLE_SIZE, MAX_EXP, ChunkedMatrix
from distw2v.models.huffman import MAX_CODE_LENGTH, create_binary_tree
from distw2v.models.vocab import build_vocab


logger = logging.getLogger(__name__)

#: Upper bound on the number of word ids in one training sentence.
MAX_SENTENCE_LENGTH = 1000

#: Recompute the decaying learning rate every this many words.
LR_UPDATE_INTERVAL = 10000

TrainingParams = namedtuple(
    'TrainingParams', 'vector_size, window, alpha, min_alpha, seed, vocab_size, train_words_count'
)


def partition_seed(seed, partition_index, iteration):
    """Seed of the random generator used by partition `partition_index` in iteration `iteration` (1-based)."""
    return seed ^ ((partition_index + 1) << 16) ^ ((-iteration - 1) << 8)


def context_offsets(window, reduced_window):
    """Window offsets `a` visited around a center word, for reduced window `b` drawn from `[0, window)`.

    The context word for offset `a` sits at `pos - window + a`. Offset `window` is the center word itself
    and is skipped. The upper bound `2 * window + 1 - 2 * b` is the one of the Spark word2vec port this
    training scheme comes from, not the symmetric `[b, 2 * window - b]` of the C tool: the right side of the
    window shrinks twice as fast as the left one, so e.g. `window=2, b=1` visits only the left neighbour.

    """
    return [a for a in range(reduced_window, window * 2 + 1 - 2 * reduced_window) if a != window]


def sentences_from_words(words, word_index, max_sentence_length=MAX_SENTENCE_LENGTH):
    """Turn a stream of words into sentences of at most `max_sentence_length` word ids.

    Words missing from `word_index` are dropped. Sentence boundaries of the original corpus are not kept:
    ids are simply grouped as they come.

    Yields
    ------
    numpy.ndarray
        1d array of word ids (int32), never empty.

    """
    ids = (word_index[word] for word in words if word in word_index)
    for chunk in utils.chunkize_serial(ids, max_sentence_length):
        yield np.array(chunk, dtype=np.int32)


def train_sg_pair(predict_word, context_index, syn0, syn1, exp_table, alpha, syn1_modified):
    """Train on a single (center word, context word) pair with hierarchical softmax.

    Walks the Huffman path of `predict_word`, updating the `syn1` rows of the path nodes and finally the
    `syn0` row of the context word, all in place. Path nodes whose dot product falls outside
    `(-MAX_EXP, MAX_EXP)` are saturated and contribute no gradient.

    """
    l1 = syn0.row(context_index)  # input word (NN input/projection layer), a view
    points = predict_word.point
    # work on the entire path at once, to push as much work into numpy's C routines as possible
    l2a = syn1.take(points)  # 2d matrix, codelen x vector_size
    prod_term = np.dot(l2a, l1)
    inside = (prod_term > -MAX_EXP) & (prod_term < MAX_EXP)
    if not inside.any():
        return

    table_index = ((prod_term[inside].astype(np.float64) + MAX_EXP) * (EXP_TABLE_SIZE / MAX_EXP / 2.0)).astype(int)
    fa = exp_table[np.minimum(table_index, EXP_TABLE_SIZE - 1)]  # propagate hidden -> output
    ga = ((1 - predict_word.code[inside].astype(REAL) - fa) * alpha).astype(REAL)  # error gradients * learning rate
    neu1e = np.dot(ga, l2a[inside])  # save error

    for g, point in zip(ga, points[inside]):
        syn1.row(point)[:] += g * l1  # learn hidden -> output
    syn1_modified[points[inside]] = True
    l1 += neu1e  # learn input -> hidden


def train_partition_sg(sentences, syn0, syn1, vocab, exp_table, random, alpha, params):
    """Run skip-gram training over the sentences of one partition, in order, updating `syn0` and `syn1` in place.

    Parameters
    ----------
    sentences : iterable of numpy.ndarray
        Sentences of word ids.
    syn0, syn1 : :class:`~distw2v.matutils.ChunkedMatrix`
        The partition's private copies of the parameter tables.
    vocab : :class:`~distw2v.models.vocab.Vocabulary`
        Vocabulary with Huffman codes assigned.
    exp_table : numpy.ndarray
        Sigmoid lookup table, see :func:`~distw2v.matutils.create_exp_table`.
    random : numpy.random.RandomState
        The partition's random generator.
    alpha : float
        Starting learning rate.
    params : :class:`TrainingParams`
        Training parameters.

    Returns
    -------
    (numpy.ndarray, numpy.ndarray, int)
        Boolean masks of the `syn0` and `syn1` rows touched, and the number of words processed.

    """
    syn0_modified = np.zeros(params.vocab_size, dtype=bool)
    syn1_modified = np.zeros(params.vocab_size, dtype=bool)
    window = params.window
    offsets = [context_offsets(window, b) for b in range(window)]
    word_count = last_word_count = 0

    for sentence in sentences:
        if alpha > params.min_alpha and word_count - last_word_count > LR_UPDATE_INTERVAL:
            last_word_count = word_count
            alpha = params.alpha * (1 - word_count / (params.train_words_count + 1))
            alpha = max(alpha, params.min_alpha)

        word_count += len(sentence)
        for pos, word in enumerate(sentence):
            reduced_window = random.randint(window)  # `b` in the C word2vec tool
            predict_word = vocab[word]
            for a in offsets[reduced_window]:
                c = pos - window + a
                if 0 <= c < len(sentence):
                    context_index = sentence[c]
                    if predict_word.codelen:
                        train_sg_pair(predict_word, context_index, syn0, syn1, exp_table, alpha, syn1_modified)
                    syn0_modified[context_index] = True

    return syn0_modified, syn1_modified, word_count


def partition_updates(partition_index, sentences, bc_syn0, bc_syn1, bc_vocab, bc_exp_table, alpha, iteration, params):
    """Train one partition on private copies of the broadcast tables and emit its row updates.

    Yields
    ------
    (int, (numpy.ndarray, int))
        `(row_id, (delta, 1))` for each row touched, where `delta = trained_row - snapshot_row`.
        `row_id < vocab_size` addresses `syn0`, `row_id >= vocab_size` addresses `syn1` row `row_id - vocab_size`.

    """
    snapshot0, snapshot1 = bc_syn0.value, bc_syn1.value
    syn0, syn1 = snapshot0.copy(), snapshot1.copy()
    random = utils.get_random_state(partition_seed(params.seed, partition_index, iteration))

    syn0_modified, syn1_modified, word_count = train_partition_sg(
        sentences, syn0, syn1, bc_vocab.value, bc_exp_table.value, random, alpha, params,
    )
    logger.debug(
        "partition #%i trained on %i words, touched %i syn0 rows and %i syn1 rows",
        partition_index, word_count, syn0_modified.sum(), syn1_modified.sum(),
    )

    for index in np.flatnonzero(syn0_modified):
        yield int(index), (syn0.row(index) - snapshot0.row(index), 1)
    for index in np.flatnonzero(syn1_modified):
        yield int(index) + params.vocab_size, (syn1.row(index) - snapshot1.row(index), 1)


def merge_updates(update1, update2):
    """Combine two `(delta, partition_count)` updates of the same row by summation."""
    return update1[0] + update2[0], update1[1] + update2[1]


def apply_updates(syn0, syn1, merged):
    """Write merged `(row_id, (delta, partition_count))` updates into the global tables.

    Each touched row is overwritten with `row + delta`; rows without an update stay as they are.

    Returns
    -------
    (int, int, int)
        Number of `syn0` rows and `syn1` rows updated, and the total number of partition contributions.

    """
    vocab_size = len(syn0)
    syn0_updates = syn1_updates = contributions = 0
    for row_id, (delta, partition_count) in merged:
        if row_id < vocab_size:
            syn0.update(row_id, syn0.row(row_id) + delta)
            syn0_updates += 1
        else:
            syn1.update(row_id - vocab_size, syn1.row(row_id - vocab_size) + delta)
            syn1_updates += 1
        contributions += partition_count
    return syn0_updates, syn1_updates, contributions


class Word2Vec(object):
    def __init__(
            self, vector_size=100, alpha=0.025, min_alpha=None, num_partitions=1, iterations=1, min_count=5,
            window=5, seed=None, max_sentence_length=MAX_SENTENCE_LENGTH, trim_rule=None, context=None,
        ):
        """Skip-gram word2vec with hierarchical softmax, trained data-parallel over partitions.

        All parameters are validated here, before any pass over a corpus.

        Parameters
        ----------
        vector_size : int, optional
            Dimensionality of the word vectors.
        alpha : float, optional
            The initial learning rate.
        min_alpha : float, optional
            Floor of the decaying learning rate. Defaults to `alpha * 1e-4`.
        num_partitions : int, optional
            Number of partitions trained independently within one iteration. Use a small number for accuracy.
        iterations : int, optional
            Number of training iterations over the corpus. Should not exceed `num_partitions`.
        min_count : int, optional
            Ignores all words with total frequency lower than this.
        window : int, optional
            Maximum distance between the current and predicted word within a sentence.
        seed : int, optional
            Seed for the random number generators. Training with the same seed, partition count, iteration
            count and corpus gives identical vectors. A random seed is drawn when not given.
        max_sentence_length : int, optional
            Word ids are grouped into training sentences of at most this length.
        trim_rule : function, optional
            Vocabulary trimming rule, specifies whether certain words should remain in the vocabulary,
            be trimmed away, or handled using the default (discard if word count < min_count).
            See :func:`~distw2v.utils.keep_vocab_item`.
        context : :class:`~distw2v.interfaces.ContextABC`, optional
            Execution engine. Defaults to a new :class:`~distw2v.dataflow.LocalContext`.

        Raises
        ------
        :class:`~distw2v.exceptions.ConfigurationError`
            On any invalid parameter.

        Examples
        --------
        .. sourcecode:: pycon

            >>> from distw2v.models import Word2Vec
            >>> sentences = [["cat", "say", "meow"], ["dog", "say", "woof"]]
            >>> vectors = Word2Vec(min_count=1, vector_size=4, seed=1).fit(sentences)

        """
        self.vector_size = _check_int('vector_size', vector_size, minimum=1)
        self.alpha = _check_float('alpha', alpha)
        if self.alpha <= 0:
            raise ConfigurationError("alpha must be greater than 0 but got %s" % alpha)
        self.min_alpha = self.alpha * 0.0001 if min_alpha is None else _check_float('min_alpha', min_alpha)
        if not 0 <= self.min_alpha <= self.alpha:
            raise ConfigurationError("min_alpha must lie in [0, alpha=%s] but got %s" % (self.alpha, min_alpha))
        self.num_partitions = _check_int('num_partitions', num_partitions, minimum=1)
        self.iterations = _check_int('iterations', iterations, minimum=1)
        self.min_count = _check_int('min_count', min_count, minimum=0)
        self.window = _check_int('window', window, minimum=1)
        self.max_sentence_length = _check_int('max_sentence_length', max_sentence_length, minimum=1)
        if seed is None:
            seed = int(utils.get_random_state(None).randint(0, 2**63 - 1, dtype=np.int64))
        self.seed = _check_int('seed', seed)
        if trim_rule is not None and not callable(trim_rule):
            raise ConfigurationError("trim_rule must be callable, got %r" % (trim_rule,))
        self.trim_rule = trim_rule
        if context is None:
            context = LocalContext()
        if not isinstance(context, interfaces.ContextABC):
            raise ConfigurationError("context must implement distw2v.interfaces.ContextABC, got %r" % (context,))
        self.context = context

        if self.iterations > self.num_partitions:
            logger.warning(
                "iterations=%i exceeds num_partitions=%i; the number of iterations should be "
                "smaller than or equal to the number of partitions", self.iterations, self.num_partitions,
            )

        self.vocab = None
        self.syn0 = None
        self.syn1 = None
        self.training_log = []

    def __str__(self):
        """Human readable representation of the model's state."""
        return "%s(vocab=%s, vector_size=%s, alpha=%s, num_partitions=%s, iterations=%s)" % (
            self.__class__.__name__, len(self.vocab) if self.vocab is not None else 0, self.vector_size,
            self.alpha, self.num_partitions, self.iterations,
        )

    @property
    def vocab_size(self):
        return len(self.vocab) if self.vocab is not None else 0

    @property
    def train_words_count(self):
        return self.vocab.train_words_count if self.vocab is not None else 0

    def _check_corpus_sanity(self, corpus):
        """Checks whether the corpus parameter makes sense."""
        if corpus is None:
            raise TypeError("corpus must be provided")
        if not isinstance(corpus, (Iterable, interfaces.DatasetABC)):
            raise TypeError("The corpus must be an iterable of lists of strings, got %r instead" % (corpus,))
        if isinstance(corpus, GeneratorType):
            raise TypeError("Using a generator as corpus can't support several passes. Try a re-iterable sequence.")
        if isinstance(corpus, (list, tuple)) and corpus and isinstance(corpus[0], str):
            logger.warning(
                "Each corpus item should be a list of words (usually unicode strings). "
                "First item here is instead plain %s; it will be split on whitespace.", type(corpus[0]),
            )

    def _corpus_words(self, corpus):
        """Flatten a corpus of token sequences into a partitioned dataset of words."""
        if not isinstance(corpus, interfaces.DatasetABC):
            corpus = self.context.parallelize(corpus, self.num_partitions)
        return corpus.flat_map(_sentence_tokens)

    def build_vocab(self, corpus):
        """Learn the vocabulary from `corpus` and build its Huffman tree.

        Parameters
        ----------
        corpus : iterable of list of str, or :class:`~distw2v.interfaces.DatasetABC`
            Sentences as lists of tokens, or a dataset of them.

        Raises
        ------
        :class:`~distw2v.exceptions.EmptyVocabularyError`
            If no word reaches `min_count`.

        """
        self._check_corpus_sanity(corpus)
        self._build_vocab_from_words(self._corpus_words(corpus))

    def _build_vocab_from_words(self, words):
        self.vocab = build_vocab(words, self.min_count, trim_rule=self.trim_rule)
        self.create_binary_tree()

    def create_binary_tree(self):
        """Assign each vocabulary word its Huffman code and path. Called internally from :meth:`build_vocab`."""
        create_binary_tree(self.vocab, max_code_length=MAX_CODE_LENGTH)

    def estimate_memory(self, vocab_size=None, report=None):
        """Estimate required memory for a model using current settings and provided vocabulary size.

        Parameters
        ----------
        vocab_size : int, optional
            Number of unique tokens in the vocabulary.
        report : dict of (str, int), optional
            A dictionary from string representations of the model's memory consuming members to their size in bytes.

        Returns
        -------
        dict of (str, int)
            A dictionary from string representations of the model's memory consuming members to their size in bytes.

        """
        vocab_size = self.vocab_size if vocab_size is None else vocab_size
        report = report or {}
        report['vocab'] = vocab_size * 700
        report['syn0'] = vocab_size * self.vector_size * np.dtype(REAL).itemsize
        report['syn1'] = vocab_size * self.vector_size * np.dtype(REAL).itemsize
        report['total'] = sum(report.values())
        logger.info(
            "estimated required memory for %i words and %i dimensions: %i bytes",
            vocab_size, self.vector_size, report['total'],
        )
        return report

    def init_weights(self):
        """Allocate `syn0` and `syn1` and fill them with small random values.

        Raises
        ------
        :class:`~distw2v.exceptions.EmbeddingTableTooLargeError`
            Before allocating anything, if the tables would exceed :data:`~distw2v.matutils.MAX_TABLE_SIZE`.

        """
        if self.vocab is None:
            raise RuntimeError("you must first build vocabulary before initializing weights")
        matutils.check_table_size(self.vocab_size, self.vector_size)
        self.estimate_memory()

        logger.info("resetting layer weights")
        random = utils.get_random_state(self.seed)

        def fill(size):
            return (random.rand(size) - 0.5) / self.vector_size

        # syn0 first: both tables draw from the same stream
        self.syn0 = ChunkedMatrix.fill_blocks(self.vocab_size, self.vector_size, fill)
        self.syn1 = ChunkedMatrix.fill_blocks(self.vocab_size, self.vector_size, fill)

    def _prepare_sentences(self, words):
        """Group words into id sentences, spread them over `num_partitions` partitions and cache them."""
        word_index = self.vocab.word_index
        max_sentence_length = self.max_sentence_length
        sentences = words.map_partitions_with_index(
            lambda index, partition: sentences_from_words(partition, word_index, max_sentence_length)
        )
        return sentences.repartition(self.num_partitions).cache()

    def _training_params(self):
        return TrainingParams(
            vector_size=self.vector_size, window=self.window, alpha=self.alpha, min_alpha=self.min_alpha,
            seed=self.seed, vocab_size=self.vocab_size, train_words_count=self.train_words_count,
        )

    def _train_iteration(self, sentences, iteration, bc_vocab, bc_exp_table):
        """Run one iteration: broadcast, train partitions, merge, apply, release."""
        alpha = self.alpha / iteration
        logger.info("start iteration %i of %i, alpha=%f", iteration, self.iterations, alpha)

        bc_syn0 = self.context.broadcast(self.syn0)
        bc_syn1 = self.context.broadcast(self.syn1)
        try:
            partial = sentences.map_partitions_with_index(functools.partial(
                partition_updates,
                bc_syn0=bc_syn0, bc_syn1=bc_syn1, bc_vocab=bc_vocab, bc_exp_table=bc_exp_table,
                alpha=alpha, iteration=iteration, params=self._training_params(),
            ))
            merged = partial.reduce_by_key(merge_updates).collect()
            syn0_updates, syn1_updates, contributions = apply_updates(self.syn0, self.syn1, merged)
        finally:
            bc_syn0.destroy()
            bc_syn1.destroy()

        logger.info(
            "iteration %i: syn0 updates = %i, syn1 updates = %i, from %i partition contributions",
            iteration, syn0_updates, syn1_updates, contributions,
        )
        self.training_log.append((alpha, syn0_updates, syn1_updates))

    def fit(self, corpus):
        """Learn the vocabulary and train vectors for all of its words.

        Parameters
        ----------
        corpus : iterable of list of str, or :class:`~distw2v.interfaces.DatasetABC`
            Sentences as lists of tokens, or a dataset of them. Plain-string sentences are split on whitespace.

        Returns
        -------
        list of (str, numpy.ndarray)
            Each vocabulary word with its trained vector, in vocabulary order (most frequent first).

        """
        self._check_corpus_sanity(corpus)
        logger.info(
            "training on partitions=%i, window=%i, iterations=%i, min_count=%i, vector_size=%i",
            self.num_partitions, self.window, self.iterations, self.min_count, self.vector_size,
        )
        start = default_timer()

        words = self._corpus_words(corpus).cache()
        self._build_vocab_from_words(words)
        self.init_weights()
        self.training_log = []

        sentences = self._prepare_sentences(words)
        words.unpersist()
        bc_vocab = self.context.broadcast(self.vocab)
        bc_exp_table = self.context.broadcast(matutils.create_exp_table())
        try:
            for iteration in range(1, self.iterations + 1):
                self._train_iteration(sentences, iteration, bc_vocab, bc_exp_table)
        finally:
            sentences.unpersist()
            bc_vocab.destroy()
            bc_exp_table.destroy()

        logger.info("training on %i words took %.1fs", self.train_words_count, default_timer() - start)
        return [(vocab_word.word, self.syn0.copy_row(index)) for index, vocab_word in enumerate(self.vocab)]

    def get_vectors(self):
        """Get a `word -> vector` dict of all trained vectors (copies of the `syn0` rows)."""
        if self.syn0 is None:
            raise RuntimeError("you must train the model before asking for its vectors")
        return {vocab_word.word: self.syn0.copy_row(index) for index, vocab_word in enumerate(self.vocab)}

    def __getitem__(self, word):
        """Get the trained vector of `word`, a copy."""
        if self.syn0 is None:
            raise RuntimeError("you must train the model before asking for its vectors")
        return self.syn0.copy_row(self.vocab.index(word))

    def __contains__(self, word):
        return self.vocab is not None and word in self.vocab

    def __len__(self):
        return self.vocab_size


def _sentence_tokens(sentence):
    """Tokens of one corpus item; plain strings are split on whitespace."""
    if isinstance(sentence, (str, bytes)):
        return utils.to_unicode(sentence).split()
    return sentence


def _check_int(name, value, minimum=None):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError("%s must be an integer, got %r" % (name, value))
    if minimum is not None and value < minimum:
        raise ConfigurationError("%s must be at least %i but got %i" % (name, minimum, value))
    return int(value)


def _check_float(name, value):
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise ConfigurationError("%s must be a number, got %r" % (name, value))
    return float(value)


class LineSentence(object):
    def __init__(self, source, max_sentence_length=MAX_SENTENCE_LENGTH, limit=None):
        """Iterate over a file that contains sentences: one line = one sentence.
        Words must be already preprocessed and separated by whitespace.

        Parameters
        ----------
        source : string or a file-like object
            Path to the file on disk (or any URI `smart_open` understands, compressed files included),
            or an already-open file object (must support `seek(0)`).
        max_sentence_length : int, optional
            Split longer lines into several sentences of at most this many words.
        limit : int or None
            Clip the file to the first `limit` lines. Do no clipping if `limit is None` (the default).

        Examples
        --------
        .. sourcecode:: pycon

            >>> from distw2v.test.utils import datapath
            >>> sentences = LineSentence(datapath('testcorpus.txt'))
            >>> for sentence in sentences:
            ...     pass

        """
        self.source = source
        self.max_sentence_length = max_sentence_length
        self.limit = limit

    def _sentences(self, lines):
        for line in itertools.islice(lines, self.limit):
            line = utils.to_unicode(line).split()
            i = 0
            while i < len(line):
                yield line[i: i + self.max_sentence_length]
                i += self.max_sentence_length

    def __iter__(self):
        """Iterate through the lines in the source."""
        if hasattr(self.source, 'seek'):
            self.source.seek(0)
            yield from self._sentences(self.source)
        else:
            with utils.open(self.source, 'rb') as fin:
                yield from self._sentences(fin)
