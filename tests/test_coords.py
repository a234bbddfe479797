import pytest

from vroom_api.core.coords import parse_coordinate, parse_coordinates
from vroom_api.core.errors import InvalidCoordinateFormat, InvalidCoordinateValue, ValidationError


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.0,2.0", (1.0, 2.0)),
        ("-6.2603,53.3498", (-6.2603, 53.3498)),
        ("0,0", (0.0, 0.0)),
        ("1e2,-3.5", (100.0, -3.5)),
        ("+1.,.5", (1.0, 0.5)),
    ],
)
def test_parses_lon_lat_pairs(text, expected):
    assert parse_coordinate(text) == expected


@pytest.mark.parametrize("text", ["bad", "1.0", "1,2,3", "", "1;2"])
def test_rejects_wrong_arity(text):
    with pytest.raises(InvalidCoordinateFormat) as exc:
        parse_coordinate(text)
    assert text in str(exc.value)


@pytest.mark.parametrize(
    "text",
    ["a,1", "1,b", "1,", ",1", "nan,1", "1,inf", "1e999,0", "1_000,2", "\u0661,\u0662", " 1 , 2 ", "0x1,2"],
)
def test_rejects_non_numeric_components(text):
    with pytest.raises(InvalidCoordinateValue) as exc:
        parse_coordinate(text)
    assert str(exc.value) == f"Invalid coord: {text}"


def test_label_names_the_offending_parameter():
    # Scenario: start/end errors must say which parameter was wrong.
    with pytest.raises(ValidationError, match="start coord: 1"):
        parse_coordinate("1", "start coord")


def test_parse_coordinates_keeps_order():
    assert parse_coordinates(["3,4", "1,2"]) == [(3.0, 4.0), (1.0, 2.0)]
    assert parse_coordinates([]) == []
