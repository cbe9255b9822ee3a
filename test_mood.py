"""
Tests for valence/arousal estimation and emotion classification
"""

import math

import pytest

from affect_bridge.core.config import EMOTION_COLORS
from affect_bridge.core.data_types import EMOTIONS, MoodReading, MoodWindow, Sample
from affect_bridge.detection.mood import MoodEstimator, classify_emotion, finite_mean
from conftest import make_sample

CHANNELS = ["F5", "F6", "C3", "C4"]


def small_estimator(**kwargs):
    params = dict(channel_names=CHANNELS, valence_window=4, valence_step=2,
                  arousal_window=2, arousal_step=1)
    params.update(kwargs)
    return MoodEstimator(**params)


def mood_sample(left=1.0, right=1.0, alpha_rest=1.0, beta=1.0):
    return make_sample(1.0, {"alpha": [left, right, alpha_rest, alpha_rest],
                             "beta": [beta] * 4}, channel_count=4)


@pytest.mark.parametrize("valence, arousal, emotion", [
    (1.0, 1.0, "happy"),
    (-1.0, 1.0, "angry"),
    (-1.0, -1.0, "bored"),
    (1.0, -1.0, "relaxed"),
    (0.0, 0.0, "happy"),
    (0.0, -0.5, "relaxed"),
    (-0.5, 0.0, "angry"),
])
def test_quadrant_classification(valence, arousal, emotion):
    assert classify_emotion(valence, arousal) == emotion


def test_valence_is_log_alpha_asymmetry():
    estimator = small_estimator()
    score = estimator.valence_score(mood_sample(left=2.0, right=8.0))
    assert score == pytest.approx(math.log(8.0) - math.log(2.0))


def test_valence_floors_zero_alpha():
    estimator = small_estimator(epsilon=1e-6)
    score = estimator.valence_score(mood_sample(left=0.0, right=1.0))
    assert score == pytest.approx(-math.log(1e-6))


def test_arousal_is_ratio_of_means():
    estimator = small_estimator()
    sample = make_sample(1.0, {"alpha": [1.0, 3.0, 1.0, 3.0], "beta": [2.0, 4.0, 2.0, 4.0]},
                         channel_count=4)
    assert estimator.arousal_score(sample) == pytest.approx(3.0 / 2.0)


def test_zero_filled_bands_score_zero():
    estimator = small_estimator()
    sample = Sample(bands={"beta": [5.0] * 4}).with_all_bands(["alpha", "beta"], 4)
    assert estimator.valence_score(sample) == 0.0
    assert estimator.arousal_score(sample) == 0.0


def test_no_reading_until_valence_window_full():
    estimator = small_estimator()
    window = MoodWindow()
    for _ in range(3):
        window, reading = estimator.update(window, mood_sample())
        assert reading is None
    assert len(window.valence) == 3
    assert len(window.arousal) == 2


def test_equal_frontal_alpha_gives_zero_valence_every_window():
    estimator = small_estimator()
    window = MoodWindow()
    readings = []
    for _ in range(12):
        window, reading = estimator.update(window, mood_sample(left=3.0, right=3.0, beta=6.0))
        if reading is not None:
            readings.append(reading)
    assert len(readings) == 5  # at 4, 6, 8, 10, 12 samples
    for reading in readings:
        assert reading.valence == 0.0
        assert reading.arousal == pytest.approx(6.0 / 2.0)
        assert reading.emotion == "happy"


def test_windows_slide_by_step_not_cleared():
    estimator = small_estimator()
    samples = [mood_sample(left=1.0, right=float(i + 1)) for i in range(4)]
    window = MoodWindow()
    for s in samples:
        window, reading = estimator.update(window, s)
    assert reading is not None
    assert window.valence == tuple(samples[2:])
    assert window.arousal == tuple(samples[3:])


def test_update_returns_new_window_without_mutating_input():
    estimator = small_estimator()
    window = MoodWindow()
    new_window, _ = estimator.update(window, mood_sample())
    assert window == MoodWindow()
    assert len(new_window.valence) == 1


def test_arousal_uses_own_window_when_full():
    estimator = small_estimator()
    window = MoodWindow()
    for beta in (10.0, 10.0, 1.0, 1.0):
        window, reading = estimator.update(window, mood_sample(beta=beta))
    # arousal window (2) only holds the last two samples
    assert reading.arousal == pytest.approx(1.0)


def test_arousal_falls_back_to_valence_window_during_startup():
    estimator = small_estimator(arousal_window=8, arousal_step=4)
    window = MoodWindow()
    for beta in (10.0, 10.0, 1.0, 1.0):
        window, reading = estimator.update(window, mood_sample(beta=beta))
    assert reading.arousal == pytest.approx(5.5)


def test_non_finite_scores_are_excluded():
    estimator = small_estimator()
    window = MoodWindow()
    samples = [mood_sample(left=1.0, right=math.e), mood_sample(left=1.0, right=math.e),
               mood_sample(left=math.inf, right=1.0), mood_sample(left=1.0, right=math.e)]
    for s in samples:
        window, reading = estimator.update(window, s)
    assert reading.valence == pytest.approx(1.0)


def test_finite_mean_of_nothing_is_zero():
    assert finite_mean([]) == 0.0
    assert finite_mean([math.nan, math.inf]) == 0.0


def test_unknown_valence_channel_rejected():
    with pytest.raises(ValueError):
        MoodEstimator(channel_names=CHANNELS, left_channel="Fp1")


def test_every_emotion_has_an_indicator_color():
    assert set(EMOTION_COLORS) == set(EMOTIONS)


def test_reading_rejects_unknown_emotion():
    with pytest.raises(ValueError):
        MoodReading(valence=0.0, arousal=0.0, emotion="surprised")
