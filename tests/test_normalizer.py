import pytest

from generation.errors import MalformedOutputError
from generation.normalizer import (
    EXCERPT_CHARS,
    iter_balanced_arrays,
    normalize,
    strip_fences,
)


def _qa(pairs):
    return [(p.question, p.answer) for p in pairs]


def test_array_passthrough():
    assert _qa(normalize('[{"question":"Q1","answer":"A1"}]')) == [("Q1", "A1")]


def test_fenced_markdown():
    raw = '```json\n[{"question":"Q1","answer":"A1"}]\n```'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_numeric_keyed_object_keeps_index_order():
    raw = '{"0":{"question":"Q1","answer":"A1"},"1":{"question":"Q2","answer":"A2"}}'
    assert _qa(normalize(raw)) == [("Q1", "A1"), ("Q2", "A2")]


def test_numeric_keys_sort_numerically_before_other_keys():
    raw = (
        '{"10":{"question":"Q10","answer":"A"},"extra":{"question":"QX","answer":"A"},'
        '"2":{"question":"Q2","answer":"A"}}'
    )
    assert [p.question for p in normalize(raw)] == ["Q2", "Q10", "QX"]


@pytest.mark.parametrize("key", ["data", "results", "items", "questions", "qaPairs", "questions_answers"])
def test_container_key_is_unwrapped(key):
    raw = '{"%s": [{"question": "Q1", "answer": "A1"}]}' % key
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_priority_container_key_wins_over_other_lists():
    raw = '{"notes": [{"question": "N", "answer": "N"}], "data": [{"question": "Q1", "answer": "A1"}]}'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_ad_hoc_list_key_is_unwrapped():
    raw = '{"cac_cau_hoi": [{"question": "Q1", "answer": "A1"}]}'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_single_pair_object_is_wrapped():
    raw = '{"question": "Q1", "answer": "A1", "references": ["Điều 8"]}'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_array_embedded_in_prose():
    raw = 'Đây là kết quả [bản nháp]:\n[{"question": "Q1", "answer": "A1"}]\nCảm ơn.'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_brackets_inside_strings_do_not_break_matching():
    raw = '[{"question": "Khoản [2] quy định gì?", "answer": "Xem [Điều 3]."}] trailing text'
    assert _qa(normalize(raw)) == [("Khoản [2] quy định gì?", "Xem [Điều 3].")]


def test_double_encoded_json_string():
    raw = '"[{\\"question\\": \\"Q1\\", \\"answer\\": \\"A1\\"}]"'
    assert _qa(normalize(raw)) == [("Q1", "A1")]


def test_invalid_items_are_dropped():
    raw = """[
        {"question": "Q1", "answer": "A1"},
        {"question": "Q2"},
        {"answer": "A3"},
        {"question": "   ", "answer": "A4"},
        {"question": 5, "answer": "A5"},
        "Q6",
        null,
        {"Question": "  Q7 ", "Answer": " A7  "}
    ]"""
    assert _qa(normalize(raw)) == [("Q1", "A1"), ("Q7", "A7")]


def test_not_json_at_all_raises():
    with pytest.raises(MalformedOutputError):
        normalize("not json at all")


def test_empty_output_raises():
    with pytest.raises(MalformedOutputError):
        normalize("   ")


def test_no_valid_items_raises():
    with pytest.raises(MalformedOutputError):
        normalize('[{"question": "Q1"}, {"foo": "bar"}]')


def test_scalar_top_level_raises():
    with pytest.raises(MalformedOutputError):
        normalize("42")


def test_error_excerpt_is_bounded():
    raw = "không phải JSON " * 100
    with pytest.raises(MalformedOutputError) as exc:
        normalize(raw)
    assert 0 < len(exc.value.excerpt) <= EXCERPT_CHARS + 3


def test_strip_fences():
    assert strip_fences("```JSON\n[]\n```") == "[]"
    assert strip_fences("[]") == "[]"


def test_iter_balanced_arrays_skips_unclosed_brackets():
    assert list(iter_balanced_arrays("[ mở [1, 2] và [3]")) == ["[1, 2]", "[3]"]
