"""集計結果・報酬ティア データモデル"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List


@dataclass(frozen=True)
class OptionTally:
    """選択肢ごとの集計値"""
    name: str
    is_eco: bool
    raw_total: float
    boosted_total: float
    voter_count: int

    @property
    def eco_boost_impact(self) -> float:
        """ブーストによる上乗せ分"""
        return self.boosted_total - self.raw_total

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "is_eco": self.is_eco,
            "raw_total": self.raw_total,
            "boosted_total": self.boosted_total,
            "voter_count": self.voter_count,
            "eco_boost_impact": self.eco_boost_impact,
        }


@dataclass(frozen=True)
class TallyResult:
    proposal_id: str
    title: str
    options: List[OptionTally]
    winning_option: str
    winning_params: Dict[str, Any]
    is_winner_eco: bool
    total_raw: float
    total_boosted: float
    eco_boosted_total: float
    eco_percentage: float
    voter_count: int
    tallied_at: datetime
    is_expired: bool = False

    def option(self, name: str) -> OptionTally:
        for option_tally in self.options:
            if option_tally.name == name:
                return option_tally
        raise KeyError(name)

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "title": self.title,
            "options": [o.to_dict() for o in self.options],
            "winning_option": self.winning_option,
            "winning_params": dict(self.winning_params),
            "is_winner_eco": self.is_winner_eco,
            "total_raw": self.total_raw,
            "total_boosted": self.total_boosted,
            "eco_boosted_total": self.eco_boosted_total,
            "eco_percentage": self.eco_percentage,
            "voter_count": self.voter_count,
            "tallied_at": self.tallied_at.isoformat(),
            "is_expired": self.is_expired,
        }


@dataclass(frozen=True)
class RewardTier:
    name: str
    min_yield: float
    reward_value: float
    color: str

    def to_dict(self) -> dict:
        return {
            "tier_name": self.name,
            "min_yield": self.min_yield,
            "reward_value": self.reward_value,
            "color": self.color,
        }


@dataclass(frozen=True)
class Refund:
    """ステーク返還（勝者にはボーナス上乗せ）"""
    voter: str
    option: str
    original_amount: float
    refund_amount: float
    bonus: float
    is_winner: bool

    def to_dict(self) -> dict:
        return {
            "voter": self.voter,
            "option": self.option,
            "original_amount": self.original_amount,
            "refund_amount": self.refund_amount,
            "bonus": self.bonus,
            "is_winner": self.is_winner,
        }


@dataclass(frozen=True)
class VoterReward:
    """上位投票者への報酬プール配分"""
    voter: str
    amount: float
    rank: int

    def to_dict(self) -> dict:
        return {"voter": self.voter, "amount": self.amount, "rank": self.rank}


@dataclass
class DistributionPlan:
    """報酬分配側に渡す分配計画（コアは送金しない）"""
    proposal_id: str
    winning_option: str
    winning_params: Dict[str, Any]
    yield_percent: float
    tier: RewardTier
    refunds: List[Refund] = field(default_factory=list)
    rewards: List[VoterReward] = field(default_factory=list)

    @property
    def total_refunded(self) -> float:
        return sum(r.refund_amount for r in self.refunds)

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "winning_option": self.winning_option,
            "winning_params": dict(self.winning_params),
            "yield_percent": self.yield_percent,
            "tier": self.tier.to_dict(),
            "refunds": [r.to_dict() for r in self.refunds],
            "rewards": [r.to_dict() for r in self.rewards],
            "total_refunded": self.total_refunded,
        }
