from dataclasses import dataclass, field

import pytest

from shortlink.errors import ErrorType, SlugError
from shortlink.validation import Validator, get_validator


@dataclass
class Form:
    name: str = field(default="", metadata={"validate": "required,min=3"})
    link: str = field(default="", metadata={"validate": "omitempty,url"})


def test_valid_form_passes_and_singleton():
    assert get_validator() is get_validator()
    assert get_validator().validate(Form(name="abcd")) is None


def test_required_failure_message():
    with pytest.raises(SlugError) as info:
        Validator().validate(Form())
    assert info.value.error_type is ErrorType.REQUEST_PARAM
    assert str(info.value) == "[name]: '' | Needs to implement 'required'"


def test_multiple_failures_joined():
    with pytest.raises(SlugError) as info:
        Validator().validate(Form(name="ab", link="nourl"))
    parts = str(info.value).split(" and ")
    assert len(parts) == 2
    assert parts[0].endswith("'min'")
    assert parts[1].endswith("'url'")


def test_non_dataclass_rejected():
    with pytest.raises(TypeError):
        Validator().validate({"name": "x"})