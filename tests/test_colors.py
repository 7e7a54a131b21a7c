import pytest

from hippo_bridge.colors import RGB, hsv_to_rgb, rgb_to_hsv, with_brightness


def test_rgb_to_hsv_primary_red():
    hsv = rgb_to_hsv(255, 0, 0)
    assert hsv.h == pytest.approx(0.0)
    assert hsv.s == pytest.approx(100.0)
    assert hsv.v == pytest.approx(100.0)


def test_rgb_to_hsv_black_and_grey_have_no_saturation():
    assert rgb_to_hsv(0, 0, 0).v == pytest.approx(0.0)
    grey = rgb_to_hsv(102, 102, 102)
    assert grey.s == pytest.approx(0.0)
    assert grey.v == pytest.approx(40.0)


def test_hsv_to_rgb_green_and_half_red_rounds_up():
    assert hsv_to_rgb(120, 100, 100) == RGB(0, 255, 0)
    assert hsv_to_rgb(0, 100, 50) == RGB(128, 0, 0)


def test_hsv_to_rgb_wraps_hue_and_clamps_percentages():
    assert hsv_to_rgb(360, 100, 100) == hsv_to_rgb(0, 100, 100)
    assert hsv_to_rgb(-120, 100, 100) == hsv_to_rgb(240, 100, 100)
    assert hsv_to_rgb(0, 150, 150) == RGB(255, 0, 0)


def test_round_trip_stays_within_one_channel_unit():
    channels = list(range(0, 256, 17)) + [1, 127, 128, 254]
    for r in channels:
        for g in channels:
            for b in channels:
                hsv = rgb_to_hsv(r, g, b)
                back = hsv_to_rgb(hsv.h, hsv.s, hsv.v)
                assert abs(back.r - r) <= 1 and abs(back.g - g) <= 1 and abs(back.b - b) <= 1, (r, g, b, back)


def test_with_brightness_keeps_hue_and_saturation():
    dimmed = with_brightness(RGB(255, 128, 0), 50)
    before = rgb_to_hsv(255, 128, 0)
    after = rgb_to_hsv(dimmed.r, dimmed.g, dimmed.b)
    assert after.v == pytest.approx(50.0, abs=0.5)
    assert after.h == pytest.approx(before.h, abs=1.0)
    assert after.s == pytest.approx(before.s, abs=1.0)
