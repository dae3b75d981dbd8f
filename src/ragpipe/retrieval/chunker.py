"""
Word-based document chunking with overlap.

Text is split on whitespace and words are packed into chunks of at most
``chunk_size`` characters (single spaces included). The last
``chunk_overlap`` words of each chunk are repeated at the start of the next
one so that context survives the boundary. A word longer than
``chunk_size`` is never broken; it becomes a chunk of its own.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Segment:
    """A chunk of a document, positioned within its source."""

    index: int
    """Zero-based position of the chunk within the document."""

    text: str
    """The chunk text (words joined by single spaces)."""

    source_doc_id: str = ""
    """Document the chunk came from; empty means unattributed."""


class Chunker:
    """
    Split text into overlapping, size-bounded chunks.

    Example:
        >>> Chunker(10, 0).chunk_text("one two three four five six")
        ['one two', 'three', 'four five', 'six']
    """

    def __init__(self, chunk_size: int, chunk_overlap: int) -> None:
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum chunk size in characters, spaces included
            chunk_overlap: Number of trailing words carried into the next chunk

        Raises:
            ValueError: If either value is negative
        """
        if chunk_size < 0:
            raise ValueError(f"chunk_size must be non-negative, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be non-negative, got {chunk_overlap}")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk_text(self, text: Optional[str]) -> list[str]:
        """
        Split text into chunks with overlap.

        Args:
            text: Text to chunk; None is treated as empty

        Returns:
            Chunks in document order. Empty input gives an empty list and
            whitespace-only input is returned unchanged as a single chunk.
        """
        if not text:
            return []

        words = text.split()
        if not words:
            return [text]

        chunks: list[str] = []
        current_chunk: list[str] = []
        current_size = 0

        for i, word in enumerate(words):
            word_size = len(word) + 1  # +1 for the separator

            if current_size + word_size > self.chunk_size and current_chunk:
                chunks.append(" ".join(current_chunk))

                # Seed the next chunk with the tail of the one just closed
                overlap_words = self._get_overlap_words(current_chunk)
                current_chunk = list(overlap_words)
                current_size = self._calculate_size(overlap_words)

            current_chunk.append(word)
            current_size += word_size

            if i == len(words) - 1:
                chunks.append(" ".join(current_chunk))

        return chunks

    def split(self, text: Optional[str], doc_id: str = "") -> list[Segment]:
        """
        Chunk text and attach position and source to every chunk.

        Args:
            text: Text to chunk
            doc_id: Source document identifier (may be empty)

        Returns:
            List of Segment objects indexed from zero
        """
        return [
            Segment(index=i, text=chunk, source_doc_id=doc_id)
            for i, chunk in enumerate(self.chunk_text(text))
        ]

    def _get_overlap_words(self, words: list[str]) -> list[str]:
        """Return the last ``chunk_overlap`` words (fewer if the chunk is shorter)."""
        if self.chunk_overlap <= 0:
            return []

        overlap_count = min(self.chunk_overlap, len(words))
        return words[len(words) - overlap_count:]

    @staticmethod
    def _calculate_size(words: list[str]) -> int:
        """Rendered length of the words joined by single spaces."""
        size = sum(len(word) + 1 for word in words)
        if size > 0:
            size -= 1  # no trailing separator
        return size


def load_file(path: str | Path) -> str:
    """
    Load a UTF-8 text document.

    Args:
        path: File to read

    Returns:
        File contents

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    return Path(path).read_text(encoding="utf-8")


def discover_documents(data_dir: Path, pattern: str = "*.txt") -> list[Path]:
    """
    Discover all documents in a directory.

    Args:
        data_dir: Directory to search
        pattern: Glob pattern for document files

    Returns:
        Sorted list of matching file paths
    """
    files = [path for path in data_dir.glob(pattern) if path.is_file()]
    files.sort()
    return files
