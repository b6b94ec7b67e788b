from __future__ import annotations

import math

from app.core.exceptions import ConsistencyError
from app.models.assessment import LevelLabel

SCORE_MIN = 1.0
SCORE_MAX = 5.0

# 各等级的下界（含），按升序排列；上界为下一等级的下界（不含）
LEVEL_LOWER_BOUNDS: tuple[tuple[float, LevelLabel], ...] = (
    (SCORE_MIN, LevelLabel.low),
    (2.5, LevelLabel.moderate),
    (4.0, LevelLabel.high),
)


def classify_score(score: float) -> LevelLabel:
    """将平均分映射到等级。

    [1.0, 2.5) 为 Low，[2.5, 4.0) 为 Moderate，[4.0, 5.0] 为 High。
    分数不在 [1.0, 5.0] 内说明上游计算有误，直接抛出 ConsistencyError。

    Args:
        score: 平均分。

    Returns:
        LevelLabel: 对应等级。

    Raises:
        ConsistencyError: 分数越界或不是有效数字。
    """
    if math.isnan(score) or score < SCORE_MIN or score > SCORE_MAX:
        raise ConsistencyError(f"分数 {score!r} 超出有效范围 [{SCORE_MIN}, {SCORE_MAX}]")

    level = LEVEL_LOWER_BOUNDS[0][1]
    for lower_bound, label in LEVEL_LOWER_BOUNDS:
        if score >= lower_bound:
            level = label
    return level
