from chan_reader.services.references import extract_references


def test_extract_literal_and_escaped_markers_in_order() -> None:
    assert extract_references(">>123 hello &gt;&gt;456") == [123, 456]


def test_extract_markers_on_separate_lines() -> None:
    assert extract_references(">>123456\n&gt;&gt;789012\nSome text") == [123456, 789012]


def test_duplicate_references_are_reported_once() -> None:
    assert extract_references(">>5 >>7 >>5 &gt;&gt;7") == [5, 7]


def test_self_reference_is_excluded() -> None:
    assert extract_references(">>10 >>11", own_id=10) == [11]


def test_marker_must_be_followed_by_digits() -> None:
    assert extract_references(">> 12 >>>/g/345 >>abc") == []


def test_digit_run_is_consumed_whole() -> None:
    assert extract_references(">>12345678901234567890") == [12345678901234567890]


def test_missing_text_yields_nothing() -> None:
    assert extract_references(None) == []
    assert extract_references("") == []
