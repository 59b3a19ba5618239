"""Tests for MarkdownChunker."""

from __future__ import annotations

import pytest

from notesync.chunking.markdown import MarkdownChunker


def test_short_note_is_one_chunk():
    chunks = MarkdownChunker().chunk(1, "# Title\n\nA short body.")
    assert len(chunks) == 1
    assert chunks[0].id == "1-0"
    assert "A short body." in chunks[0].text


def test_blank_content_yields_no_chunks():
    assert MarkdownChunker().chunk(1, "   \n\n  ") == []


def test_non_string_content_raises_type_error():
    with pytest.raises(TypeError):
        MarkdownChunker().chunk(1, None)


def test_splits_at_headings_when_sections_do_not_fit():
    body = "word " * 40  # ~50 tokens per section
    text = f"# One\n{body}\n## Two\n{body}\n## Three\n{body}"
    chunks = MarkdownChunker(chunk_size=60).chunk(5, text)
    assert [c.text.splitlines()[0] for c in chunks] == ["# One", "## Two", "## Three"]
    assert [c.id for c in chunks] == ["5-0", "5-1", "5-2"]


def test_small_sections_are_packed_together():
    text = "# A\nalpha\n# B\nbeta\n# C\ngamma"
    chunks = MarkdownChunker(chunk_size=250).chunk(1, text)
    assert len(chunks) == 1
    assert "alpha" in chunks[0].text and "gamma" in chunks[0].text


def test_heading_inside_code_fence_is_not_a_boundary():
    chunker = MarkdownChunker(chunk_size=20)
    sections = chunker._split_on_headings("# Real\n```\n# not a heading\n```\ntext")
    assert len(sections) == 1


def test_oversized_section_splits_on_paragraphs():
    para = "lorem " * 30  # ~45 tokens
    text = "# Big\n\n" + "\n\n".join([para] * 4)
    chunks = MarkdownChunker(chunk_size=50).chunk(1, text)
    assert len(chunks) >= 4
    assert all(MarkdownChunker.count_tokens(c.text) <= 50 for c in chunks)


def test_oversized_paragraph_falls_back_to_window():
    text = "token " * 400  # ~600 tokens, no structure
    chunks = MarkdownChunker(chunk_size=100).chunk(1, text)
    assert len(chunks) > 1
    assert all(c.text for c in chunks)


def test_ordinals_are_contiguous():
    text = "\n\n".join(f"# H{i}\n" + "x " * 200 for i in range(5))
    chunks = MarkdownChunker(chunk_size=60).chunk(9, text)
    assert [c.ordinal for c in chunks] == list(range(len(chunks)))


def test_same_input_same_chunks():
    text = "# A\n" + "alpha beta " * 100
    a = MarkdownChunker(chunk_size=40).chunk(1, text)
    b = MarkdownChunker(chunk_size=40).chunk(1, text)
    assert a == b


@pytest.mark.parametrize("size,overlap", [(0, 0.2), (10, 1.0), (10, -0.1)])
def test_invalid_parameters_rejected(size, overlap):
    with pytest.raises(ValueError):
        MarkdownChunker(chunk_size=size, overlap=overlap)
