import pytest

from tfpolicy.paths import Path, PathError, Step, with_path


def test_empty_path_renders_empty():
    assert str(Path()) == ""
    assert len(Path()) == 0


def test_append_joins_with_dots():
    path = Path().append("a").append("b")
    assert str(path) == "a.b"
    assert [step.key for step in path] == ["a", "b"]


def test_append_does_not_change_original():
    base = Path().append("a")
    base.append("b")
    assert str(base) == "a"


def test_with_index_on_empty_path():
    path = Path().with_index("0")
    assert path.steps == (Step(indices=("0",)),)
    assert str(path) == "[0]"


def test_with_index_accumulates_on_last_step():
    path = Path().append("items").with_index("0").with_index("1")
    assert str(path) == "items[0][1]"


def test_with_index_does_not_change_original():
    base = Path().append("items")
    base.with_index("0")
    assert base.steps == (Step("items"),)


def test_path_error_message():
    err = PathError(ValueError("boom"), Path().append("a").append("b"))
    assert str(err) == "error at a.b: boom"


def test_with_path_none_passes_through():
    assert with_path(Path().append("a"), None) is None


def test_with_path_wraps_error():
    cause = TypeError("bad")
    path = Path().append("x")
    wrapped = with_path(path, cause)
    assert isinstance(wrapped, PathError)
    assert wrapped.err is cause
    assert wrapped.path == path


def test_path_error_can_be_raised_and_caught():
    with pytest.raises(PathError) as info:
        raise PathError(KeyError("k"), Path().append("root"))
    assert info.value.path == Path().append("root")