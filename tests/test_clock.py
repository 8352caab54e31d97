from __future__ import annotations

from pyticker._clock import CLOCK_MASK, MonotonicClock, elapsed_ms


def test_elapsed_ms_plain_difference() -> None:
    assert elapsed_ms(1_500, 1_000) == 500


def test_elapsed_ms_survives_counter_wrap() -> None:
    before_wrap = CLOCK_MASK - 99
    after_wrap = 150

    assert elapsed_ms(after_wrap, before_wrap) == 250


def test_monotonic_clock_stays_within_word_size() -> None:
    clock = MonotonicClock()
    first = clock.now_ms()
    second = clock.now_ms()

    assert 0 <= first <= CLOCK_MASK
    assert elapsed_ms(second, first) < 1_000
