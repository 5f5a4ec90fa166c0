"""
This package contains the vocabulary, Huffman tree and training routines of the word2vec model.
"""

# bring model classes directly into package namespace, to save some typing
from .vocab import Vocabulary, VocabWord, build_vocab  # noqa:F401
from .huffman import create_binary_tree  # noqa:F401
from .word2vec import Word2Vec, LineSentence  # noqa:F401
