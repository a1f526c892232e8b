"""
Tests for the deterministic sine-of-hash embedder.
"""

import math

import pytest
from knowledge_base.vector.embeddings import (
    IEmbeddingProvider,
    SinHashEmbedding,
    embed,
    hash_vector,
    rolling_hash,
    tokenize,
)


def reference_hash(token):
    """Unbounded polynomial hash reduced to signed 32 bits once at the end."""
    h = 0
    for char in token:
        h = h * 31 + ord(char)
    h %= 2 ** 32
    return h - 2 ** 32 if h >= 2 ** 31 else h


def test_embedding_interface():
    """Test that the embedding provider implements the interface correctly."""
    embedder = SinHashEmbedding(dimension=1536)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 1536


def test_rolling_hash_small_values():
    assert rolling_hash("") == 0
    assert rolling_hash("a") == 97
    assert rolling_hash("ab") == 97 * 31 + 98
    assert rolling_hash("hello") == 99162322


def test_rolling_hash_wraps_to_signed_32_bits():
    # Classic string whose 31-polynomial hash lands exactly on INT32_MIN
    assert rolling_hash("polygenelubricants") == -2 ** 31

    for token in ["knowledge", "supercalifragilisticexpialidocious", "x" * 200, "日本語のテキスト"]:
        h = rolling_hash(token)
        assert -2 ** 31 <= h < 2 ** 31
        assert h == reference_hash(token)


def test_rolling_hash_uses_code_points():
    assert rolling_hash("é") == 233
    assert rolling_hash("😀") == 0x1F600


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder = SinHashEmbedding(dimension=10)

    text = "Hello, world!"
    vector1 = embedder.embed_text(text)
    vector2 = embedder.embed_text(text)

    assert vector1 == vector2
    assert len(vector1) == 10


def test_consistent_output_across_instances():
    embedder1 = SinHashEmbedding(dimension=10)
    embedder2 = SinHashEmbedding(dimension=10)

    text = "This is a test string"
    assert embedder1.embed_text(text) == embedder2.embed_text(text)


def test_empty_string_is_all_half():
    assert embed("", dimension=10) == [0.5] * 10
    assert embed("", dimension=10, mode="whole") == [0.5] * 10
    assert embed("   \n\t", dimension=4) == [0.5] * 4


def test_single_token_matches_formula():
    h = rolling_hash("abc")
    expected = [math.sin(h * (i + 1)) * 0.5 + 0.5 for i in range(10)]
    assert embed("abc", dimension=10) == expected
    assert hash_vector(h, 10) == expected


def test_running_average_weights_later_tokens():
    a = hash_vector(rolling_hash("alpha"), 10)
    b = hash_vector(rolling_hash("beta"), 10)
    c = hash_vector(rolling_hash("gamma"), 10)

    assert embed("alpha beta", dimension=10) == [(x + y) / 2 for x, y in zip(a, b)]

    three = embed("alpha beta gamma", dimension=10)
    assert three == [((x + y) / 2 + z) / 2 for x, y, z in zip(a, b, c)]
    # Not an arithmetic mean
    mean = [(x + y + z) / 3 for x, y, z in zip(a, b, c)]
    assert three != pytest.approx(mean)


def test_words_mode_folds_case_and_whitespace():
    assert embed("Hello World") == embed("hello   world")
    assert embed("Hello World") == embed("\thello\nworld ")


def test_whole_mode_hashes_the_raw_string():
    assert tokenize("Hello World", mode="whole") == ["Hello World"]
    assert embed("Hello", mode="whole") != embed("hello", mode="whole")
    h = rolling_hash("Hello World")
    assert embed("Hello World", dimension=5, mode="whole") == hash_vector(h, 5)


def test_different_inputs_produce_different_vectors():
    embedder = SinHashEmbedding(dimension=10)
    assert embedder.embed_text("Hello, world!") != embedder.embed_text("Goodbye, world!")


def test_embedding_with_different_dimensions():
    """Test embedding with different dimension sizes."""
    assert len(SinHashEmbedding(dimension=10).embed_text("test")) == 10
    assert len(SinHashEmbedding(dimension=1536).embed_text("test")) == 1536


def test_components_are_bounded():
    texts = ["", "a", "The quick brown fox jumps over the lazy dog", "A" * 1000, "Hello\n\t\rWorld!@#$%^&*()"]
    for text in texts:
        vector = embed(text, dimension=64)
        assert len(vector) == 64
        assert all(0.0 <= v <= 1.0 for v in vector)


def test_invalid_configuration():
    with pytest.raises(ValueError):
        SinHashEmbedding(dimension=0)
    with pytest.raises(ValueError):
        SinHashEmbedding(mode="sentences")
    with pytest.raises(ValueError):
        tokenize("text", mode="sentences")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
