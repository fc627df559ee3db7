import pytest

from microsched.threadspec import (
    ThreadAttributeError,
    ThreadAttributes,
    ThreadParameters,
    parse_base10,
)


def test_defaults():
    params = ThreadParameters.from_attributes(ThreadAttributes.parse(""))
    assert params.stack_size == 2048
    assert params.priority == 1


def test_documented_example():
    attrs = ThreadAttributes.parse("stacksize = 1024, priority = 2")
    assert attrs.stack_size == "1024"
    assert attrs.priority == "2"
    assert attrs.no_mangle is False
    params = ThreadParameters.from_attributes(attrs)
    assert params == ThreadParameters(stack_size=1024, priority=2)


def test_only_priority_keeps_default_stack():
    params = ThreadParameters.from_attributes(ThreadAttributes.parse("priority = 5"))
    assert params.stack_size == ThreadParameters().stack_size
    assert params.priority == 5


def test_no_mangle_flag():
    attrs = ThreadAttributes.parse("no_mangle, stacksize=4096,")
    assert attrs.no_mangle is True
    assert ThreadParameters.from_attributes(attrs).stack_size == 4096


def test_later_value_wins():
    attrs = ThreadAttributes.parse("priority = 3, priority = 4")
    assert ThreadParameters.from_attributes(attrs).priority == 4


def test_unsupported_parameter():
    with pytest.raises(ThreadAttributeError, match="unsupported parameter"):
        ThreadAttributes.parse("name = 3")


@pytest.mark.parametrize("text", ["stacksize", "priority = abc", "no_mangle = 1", ",,"])
def test_malformed_attributes(text):
    with pytest.raises(ThreadAttributeError):
        ThreadAttributes.parse(text)


def test_suffix_rejected():
    attrs = ThreadAttributes.parse("stacksize = 1024u32")
    with pytest.raises(ThreadAttributeError, match="without a suffix"):
        ThreadParameters.from_attributes(attrs)


def test_priority_out_of_range():
    attrs = ThreadAttributes.parse("priority = 256")
    with pytest.raises(ThreadAttributeError, match="`priority` must be a base-10 integer"):
        ThreadParameters.from_attributes(attrs)


def test_priority_upper_bound_accepted():
    attrs = ThreadAttributes.parse("priority = 255")
    assert ThreadParameters.from_attributes(attrs).priority == 255


def test_stack_size_out_of_range():
    attrs = ThreadAttributes.parse(f"stacksize = {2**64}")
    with pytest.raises(ThreadAttributeError, match="`stack_size`"):
        ThreadParameters.from_attributes(attrs)


def test_parse_base10_plain():
    assert parse_base10("2048", "stack_size") == 2048


def test_parse_base10_underscores():
    assert parse_base10("1_024", "stack_size") == parse_base10("1024", "stack_size")


def test_parse_base10_rejects_garbage():
    with pytest.raises(ThreadAttributeError, match="`x` must be a base-10 integer"):
        parse_base10("ten", "x")


def test_parse_base10_rejects_suffix():
    with pytest.raises(ThreadAttributeError, match="without a suffix"):
        parse_base10("2u8", "priority")