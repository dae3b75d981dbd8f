"""Unit tests for retrieval.chunker module."""

import pytest

from ragpipe.retrieval.chunker import Chunker, Segment, discover_documents, load_file

LOREM = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua Ut enim ad minim veniam "
    "quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat"
)


def _reconstruct(chunks: list[str], overlap: int) -> list[str]:
    """Join chunk words back together, dropping the repeated overlap words."""
    words = chunks[0].split()
    previous = words
    for chunk in chunks[1:]:
        chunk_words = chunk.split()
        skip = min(overlap, len(previous)) if overlap > 0 else 0
        words.extend(chunk_words[skip:])
        previous = chunk_words
    return words


@pytest.mark.unit
class TestChunkText:
    """Tests for Chunker.chunk_text."""

    def test_basic_chunking_without_overlap(self):
        """Words are packed until the next one would exceed the size."""
        chunker = Chunker(10, 0)

        chunks = chunker.chunk_text("one two three four five six")

        assert chunks == ["one two", "three", "four five", "six"]

    def test_chunking_with_overlap(self):
        """The last overlap words of a chunk start the next one."""
        chunker = Chunker(10, 1)

        chunks = chunker.chunk_text("one two three four five six")

        assert chunks == ["one two", "two three", "three four", "four five", "five six"]

    def test_empty_input(self):
        """Empty input yields no chunks at all."""
        assert Chunker(100, 0).chunk_text("") == []

    def test_none_input(self):
        """None is treated as empty input."""
        assert Chunker(100, 0).chunk_text(None) == []

    def test_whitespace_only_input(self):
        """Whitespace-only input is returned unchanged as a single chunk."""
        text = "   \n\n\t  "

        assert Chunker(100, 0).chunk_text(text) == [text]

    def test_text_smaller_than_chunk_size(self):
        """Short text returns a single chunk."""
        assert Chunker(1000, 200).chunk_text("Short text") == ["Short text"]

    def test_whitespace_is_normalized(self):
        """Newlines and runs of spaces collapse to single spaces."""
        chunks = Chunker(100, 0).chunk_text("hello   world\n\nfoo\tbar")

        assert chunks == ["hello world foo bar"]

    def test_oversized_word_is_never_split(self):
        """A word longer than chunk_size becomes its own chunk, verbatim."""
        word = "supercalifragilistic"
        chunks = Chunker(5, 0).chunk_text(f"a {word} b")

        assert chunks == ["a", word, "b"]

    def test_single_oversized_word(self):
        """A lone oversized word is emitted as-is."""
        assert Chunker(3, 0).chunk_text("abcdefgh") == ["abcdefgh"]

    def test_zero_chunk_size(self):
        """With chunk_size 0 every word becomes its own chunk."""
        assert Chunker(0, 0).chunk_text("a bb ccc") == ["a", "bb", "ccc"]

    @pytest.mark.parametrize("chunk_size", [5, 12, 30, 80])
    @pytest.mark.parametrize("overlap", [0, 1, 3])
    def test_no_empty_chunks(self, chunk_size, overlap):
        """Non-empty text always gives at least one chunk and no empty strings."""
        chunks = Chunker(chunk_size, overlap).chunk_text(LOREM)

        assert len(chunks) >= 1
        assert all(chunk for chunk in chunks)

    @pytest.mark.parametrize("chunk_size", [10, 25, 60])
    def test_size_bound(self, chunk_size):
        """Multi-word chunks never exceed chunk_size characters."""
        chunks = Chunker(chunk_size, 0).chunk_text(LOREM)

        for chunk in chunks:
            if len(chunk.split()) > 1:
                assert len(chunk) <= chunk_size

    def test_overlap_seed_can_exceed_chunk_size(self):
        """The overlap seed plus the next word is kept even past chunk_size."""
        chunks = Chunker(10, 5).chunk_text("one two three four")

        assert chunks == ["one two", "one two three", "one two three four"]
        assert len(chunks[1]) > 10

    @pytest.mark.parametrize("overlap", [1, 2, 4])
    def test_overlap_bound(self, overlap):
        """Each chunk starts with the trailing words of the previous chunk."""
        chunks = Chunker(40, overlap).chunk_text(LOREM)
        assert len(chunks) > 1

        for previous, current in zip(chunks, chunks[1:]):
            prev_words = previous.split()
            shared = min(overlap, len(prev_words))
            assert current.split()[:shared] == prev_words[-shared:]

    @pytest.mark.parametrize("overlap", [0, 1, 3])
    def test_chunks_reconstruct_original_words(self, overlap):
        """Dropping the overlap words and joining gives back the word stream."""
        chunks = Chunker(30, overlap).chunk_text(LOREM)

        assert _reconstruct(chunks, overlap) == LOREM.split()

    def test_chunking_is_deterministic(self):
        """The same input always gives the same chunks."""
        chunker = Chunker(25, 2)

        assert chunker.chunk_text(LOREM) == chunker.chunk_text(LOREM)


@pytest.mark.unit
class TestChunkerHelpers:
    """Tests for overlap selection and size calculation."""

    def test_get_overlap_words(self):
        """Returns the last chunk_overlap words."""
        chunker = Chunker(100, 2)

        assert chunker._get_overlap_words(["one", "two", "three", "four", "five"]) == [
            "four",
            "five",
        ]

    def test_get_overlap_words_more_than_available(self):
        """Never returns more words than the chunk has."""
        chunker = Chunker(100, 10)

        assert chunker._get_overlap_words(["one", "two", "three"]) == ["one", "two", "three"]

    def test_get_overlap_words_zero_overlap(self):
        """Zero overlap gives no words."""
        assert Chunker(100, 0)._get_overlap_words(["one", "two"]) == []

    @pytest.mark.parametrize(
        ("words", "expected"),
        [
            ([], 0),
            (["hello"], 5),
            (["one", "two", "three"], 13),
        ],
    )
    def test_calculate_size(self, words, expected):
        """Size counts single spaces between words but no trailing space."""
        assert Chunker._calculate_size(words) == expected


@pytest.mark.unit
class TestChunkerConstruction:
    """Tests for Chunker argument validation."""

    def test_negative_chunk_size(self):
        with pytest.raises(ValueError, match="chunk_size must be non-negative"):
            Chunker(-1, 0)

    def test_negative_overlap(self):
        with pytest.raises(ValueError, match="chunk_overlap must be non-negative"):
            Chunker(100, -10)


@pytest.mark.unit
class TestSplit:
    """Tests for Chunker.split."""

    def test_segments_are_indexed_in_order(self):
        """Segments carry their position and the source document id."""
        segments = Chunker(10, 0).split("one two three four five six", doc_id="doc-1")

        assert segments == [
            Segment(index=0, text="one two", source_doc_id="doc-1"),
            Segment(index=1, text="three", source_doc_id="doc-1"),
            Segment(index=2, text="four five", source_doc_id="doc-1"),
            Segment(index=3, text="six", source_doc_id="doc-1"),
        ]

    def test_split_without_doc_id(self):
        """Unattributed segments have an empty source id."""
        segments = Chunker(100, 0).split("hello world")

        assert segments == [Segment(index=0, text="hello world", source_doc_id="")]

    def test_split_empty_text(self):
        assert Chunker(100, 0).split("") == []


@pytest.mark.unit
class TestDocumentFiles:
    """Tests for load_file and discover_documents."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "doc.txt"
        path.write_text("Привет, world", encoding="utf-8")

        assert load_file(path) == "Привет, world"

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_file(tmp_path / "missing.txt")

    def test_discover_documents_sorted(self, tmp_path):
        for name in ["b.txt", "a.txt", "notes.md"]:
            (tmp_path / name).write_text("content")

        files = discover_documents(tmp_path)

        assert [f.name for f in files] == ["a.txt", "b.txt"]

    def test_discover_documents_custom_pattern(self, tmp_path):
        (tmp_path / "a.txt").write_text("content")
        (tmp_path / "notes.md").write_text("content")

        files = discover_documents(tmp_path, pattern="*.md")

        assert [f.name for f in files] == ["notes.md"]
