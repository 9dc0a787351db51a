"""エコブースト計算 - EcoBoostCalculator"""
import math
from typing import Optional

from yield_dao.config import Config
from yield_dao.core.errors import InvalidSentiment
from yield_dao.models.proposal import ProposalOption


def validate_boost_settings(base_multiplier: float, threshold: float):
    """倍率は1以上、閾値は (0, 1] でなければ ValueError"""
    if not base_multiplier >= 1:
        raise ValueError(f"base_multiplier must be >= 1: {base_multiplier!r}")
    if not 0 < threshold <= 1:
        raise ValueError(f"threshold must be within (0, 1]: {threshold!r}")


def compute_boost(
    is_eco_option: bool,
    sentiment_score: float,
    base_multiplier: float,
    threshold: float,
) -> float:
    """
    エコ選択肢へのステークに掛けるブースト倍率を計算する。

    - 非エコ選択肢: 常に 1
    - センチメントが閾値を超える: base_multiplier
    - 閾値以下: 1 から base_multiplier まで線形に補間（閾値でちょうど base_multiplier）

    Args:
        is_eco_option: 選択肢がエコフラグ付きか
        sentiment_score: 外部から与えられるセンチメント [0, 1]
        base_multiplier: 最大ブースト倍率（1以上）
        threshold: 最大ブーストに達するセンチメント閾値 (0, 1]
    Raises:
        InvalidSentiment: sentiment_score が [0, 1] の範囲外
        ValueError: base_multiplier / threshold の設定値が不正
    """
    try:
        score = float(sentiment_score)
    except (TypeError, ValueError):
        raise InvalidSentiment(f"Sentiment score must be a number: {sentiment_score!r}")
    if math.isnan(score) or not 0 <= score <= 1:
        raise InvalidSentiment(f"Sentiment score must be within [0, 1]: {sentiment_score!r}")
    validate_boost_settings(base_multiplier, threshold)

    if not is_eco_option:
        return 1.0
    if score >= threshold:
        return base_multiplier
    return 1 + (base_multiplier - 1) * (score / threshold)


class EcoBoostCalculator:
    """設定済みの倍率・閾値で compute_boost を呼び出す"""

    def __init__(
        self,
        base_multiplier: Optional[float] = None,
        threshold: Optional[float] = None,
    ):
        self.base_multiplier = (
            Config.ECO_BOOST_MULTIPLIER if base_multiplier is None else base_multiplier
        )
        self.threshold = Config.ECO_BOOST_THRESHOLD if threshold is None else threshold
        # 設定不備は最初の投票ではなく起動時に検出する
        validate_boost_settings(self.base_multiplier, self.threshold)

    def boost_for(self, option: ProposalOption, sentiment_score: float) -> float:
        return compute_boost(option.is_eco, sentiment_score, self.base_multiplier, self.threshold)
