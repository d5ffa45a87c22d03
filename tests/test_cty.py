import math

import pytest

from tfpolicy.cty import (
    BOOL,
    NUMBER,
    STRING,
    Kind,
    Type,
    bool_value,
    list_empty,
    list_of,
    list_value,
    map_empty,
    map_of,
    map_value,
    null_value,
    number_value,
    object_of,
    object_value,
    string_value,
)


def test_collections_are_collections():
    assert list_of(STRING).is_collection()
    assert map_of(NUMBER).is_collection()
    assert Type(Kind.SET, element=BOOL).is_collection()


def test_non_collections():
    assert not STRING.is_collection()
    assert not object_of({"a": STRING}).is_collection()


def test_friendly_name_of_list():
    assert list_of(STRING).friendly_name() == "list of string"


def test_friendly_name_of_primitives_matches_kind():
    for t in (BOOL, NUMBER, STRING):
        assert t.friendly_name() == t.kind.value


def test_collection_needs_element():
    with pytest.raises(ValueError):
        Type(Kind.LIST)


def test_object_attribute_order_does_not_matter():
    assert object_of({"b": STRING, "a": NUMBER}) == object_of({"a": NUMBER, "b": STRING})
    assert object_of({"a": NUMBER}).attribute_types == {"a": NUMBER}


def test_null_and_non_null():
    assert null_value(STRING).is_null()
    assert not string_value("").is_null()
    assert null_value(list_of(STRING)) != list_empty(STRING)


def test_int_and_float_numbers_are_equal():
    assert number_value(42) == number_value(42.0)


def test_number_rejects_bool_and_nan():
    with pytest.raises(TypeError):
        number_value(True)
    with pytest.raises(ValueError):
        number_value(math.nan)


def test_bool_value_rejects_non_bool():
    with pytest.raises(TypeError):
        bool_value(1)
    assert bool_value(False).raw is False


def test_string_is_normalized():
    assert string_value("e\u0301") == string_value("\u00e9")


def test_list_value_type_and_contents():
    value = list_value([string_value("hello"), string_value("world")])
    assert value.type == list_of(STRING)
    assert value.raw == (string_value("hello"), string_value("world"))


def test_list_value_rejects_empty_and_mixed():
    with pytest.raises(ValueError):
        list_value([])
    with pytest.raises(ValueError):
        list_value([string_value("a"), number_value(1)])


def test_map_value_and_empty():
    value = map_value({"hello": string_value("world")})
    assert value.type == map_of(STRING)
    assert map_empty(STRING).type == value.type
    assert map_empty(STRING).raw == {}


def test_map_value_rejects_non_string_keys():
    with pytest.raises(TypeError):
        map_value({1: string_value("x")})


def test_object_value_type():
    value = object_value({"field": string_value("hello"), "n": null_value(NUMBER)})
    assert value.type == object_of({"field": STRING, "n": NUMBER})