import math

import pytest

from app.core.exceptions import ConsistencyError
from app.models.assessment import LevelLabel
from app.services.level_classifier import classify_score


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (1.0, LevelLabel.low),
        (2.4, LevelLabel.low),
        (2.45, LevelLabel.low),
        (2.5, LevelLabel.moderate),
        (3.0, LevelLabel.moderate),
        (3.9, LevelLabel.moderate),
        (3.95, LevelLabel.moderate),
        (4.0, LevelLabel.high),
        (4.5, LevelLabel.high),
        (5.0, LevelLabel.high),
    ],
)
def test_classify_score_bands(score, expected):
    assert classify_score(score) is expected


def test_classify_score_mean_of_many_answers_is_defined():
    # 7 道题 [2,2,2,3,3,3,2] 的平均分 17/7 ≈ 2.43，落在 Low
    assert classify_score(17 / 7) is LevelLabel.low


@pytest.mark.parametrize("score", [0.0, 0.99, 5.01, 6.0, -1.0, math.nan, math.inf])
def test_classify_score_rejects_out_of_domain(score):
    with pytest.raises(ConsistencyError):
        classify_score(score)


def test_classify_score_is_stable():
    assert {classify_score(3.9) for _ in range(10)} == {LevelLabel.moderate}
