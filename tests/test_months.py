import pytest

from ooh.months import month_index, month_label, month_sort_key


@pytest.mark.parametrize(
    "value, expected",
    [
        ("март", 3),
        ("мар", 3),
        ("Март", 3),
        ("марта", 3),
        ("03", 3),
        ("3", 3),
        (3, 3),
        ("май", 5),
        ("мая", 5),
        ("сент.", 9),
        ("декабрь", 12),
        ("12", 12),
    ],
)
def test_month_index_recognises_spellings(value, expected):
    assert month_index(value) == expected


@pytest.mark.parametrize("value", ["13", "0", "", None, "квартал", "q1"])
def test_month_index_unknown(value):
    assert month_index(value) is None


def test_unrecognised_months_sort_last():
    values = ["дек", "квартал", "янв", "03", "итого"]
    assert sorted(values, key=month_sort_key) == ["янв", "03", "дек", "итого", "квартал"]


def test_month_label_uses_abbreviation():
    assert month_label("03") == "мар"
    assert month_label("октябрь") == "окт"
    assert month_label("??") == "??"
