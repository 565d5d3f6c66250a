import re

import pytest

from ingestion.chunkers import split_text


def _squash(s: str) -> str:
    return re.sub(r"\s+", "", s)


def test_short_text_is_single_chunk():
    chunks = split_text("Điều 1. Phạm vi điều chỉnh.\n\nĐiều 2. Đối tượng áp dụng.")
    assert len(chunks) == 1
    assert chunks[0].index == 1
    assert chunks[0].text == "Điều 1. Phạm vi điều chỉnh.\n\nĐiều 2. Đối tượng áp dụng."


def test_paragraphs_are_packed_greedily_within_bound(long_legal_text):
    chunks = split_text(long_legal_text, max_len=1000)
    assert len(chunks) > 1
    assert all(1 <= len(c.text) <= 1000 for c in chunks)
    assert [c.index for c in chunks] == list(range(1, len(chunks) + 1))
    # paragraphs are never split when they fit on their own
    for c in chunks:
        assert c.text.startswith("Điều ")


def test_every_paragraph_appears_once_in_order(long_legal_text):
    chunks = split_text(long_legal_text, max_len=900)
    joined = "\n\n".join(c.text for c in chunks)
    paragraphs = [p for p in long_legal_text.split("\n\n") if p.strip()]
    pos = 0
    for p in paragraphs:
        found = joined.find(p, pos)
        assert found >= pos
        pos = found + len(p)
    assert _squash(joined) == _squash(long_legal_text)


def test_long_paragraph_is_split_on_sentences():
    sentence = "Người lao động có quyền nghỉ hằng năm theo quy định. "
    para = sentence * 10
    chunks = split_text(para, max_len=120)
    assert all(len(c.text) <= 120 for c in chunks)
    for c in chunks:
        assert c.text.endswith("quy định.")
    assert _squash("".join(c.text for c in chunks)) == _squash(para)


def test_unbreakable_token_is_hard_cut():
    chunks = split_text("x" * 7000, max_len=3000)
    assert [len(c.text) for c in chunks] == [3000, 3000, 1000]
    assert "".join(c.text for c in chunks) == "x" * 7000


def test_oversized_sentence_flushes_current_buffer_first():
    text = "Mở đầu ngắn.\n\n" + "y" * 50 + ". Câu sau."
    chunks = split_text(text, max_len=20)
    assert chunks[0].text == "Mở đầu ngắn."
    assert all(1 <= len(c.text) <= 20 for c in chunks)
    assert _squash("".join(c.text for c in chunks)) == _squash(text)


def test_blank_input_has_no_chunks():
    assert split_text("") == []
    assert split_text(" \n\n \t\n") == []


def test_paragraph_breaks_with_trailing_spaces():
    chunks = split_text("Đoạn một.\n   \nĐoạn hai.", max_len=10)
    assert [c.text for c in chunks] == ["Đoạn một.", "Đoạn hai."]


def test_rejects_non_positive_max_len():
    with pytest.raises(ValueError):
        split_text("abc", max_len=0)
