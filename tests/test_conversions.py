"""
Tests for the millimeter to inch display helpers.
"""

from quotation_manager.services.conversions import format_thickness, mm_to_inches


def test_whole_inch():
    assert mm_to_inches(25.4) == '1"'
    assert mm_to_inches(50.8) == '2"'


def test_fractions_are_reduced():
    assert mm_to_inches(3.175) == '1/8"'
    assert mm_to_inches(6.35) == '1/4"'
    assert mm_to_inches(12.7) == '1/2"'
    assert mm_to_inches(4.7625) == '3/16"'


def test_mixed_number():
    assert mm_to_inches(31.75) == '1 1/4"'


def test_rounds_to_nearest_sixteenth():
    # 6 mm = 3.78 sixteenths
    assert mm_to_inches(6) == '1/4"'
    # 10 mm = 6.30 sixteenths
    assert mm_to_inches(10) == '3/8"'


def test_values_below_half_a_sixteenth_are_empty():
    assert mm_to_inches(0) == ""
    assert mm_to_inches(0.5) == ""


def test_format_thickness():
    assert format_thickness(6.35) == '6.35 mm (1/4")'
    assert format_thickness(25.4) == '25.4 mm (1")'
    assert format_thickness(6) == '6 mm (1/4")'


def test_format_thickness_without_inches():
    assert format_thickness(0.5) == "0.5 mm"


def test_format_thickness_falsy():
    assert format_thickness(0) == ""
    assert format_thickness(None) == ""
