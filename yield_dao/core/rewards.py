"""報酬分配計画 - RewardPlanner"""
from typing import List, Optional

from yield_dao.config import Config
from yield_dao.core.tally import tier_for_yield
from yield_dao.models.stake import StakeRecord
from yield_dao.models.tally import (
    DistributionPlan,
    Refund,
    RewardTier,
    TallyResult,
    VoterReward,
)
from yield_dao.utils.logger import get_logger

logger = get_logger("RewardPlanner")


class RewardPlanner:
    """
    集計結果からステーク返還と上位投票者報酬の計画を作る。
    送金やNFT発行は行わず、報酬分配側に渡すデータだけを返す。
    """

    def __init__(
        self,
        winner_bonus: Optional[float] = None,
        reward_pool: Optional[float] = None,
        tiers: Optional[List[RewardTier]] = None,
    ):
        self.winner_bonus = Config.WINNER_BONUS if winner_bonus is None else winner_bonus
        self.reward_pool = Config.REWARD_POOL if reward_pool is None else reward_pool
        self.tiers = tiers

    def plan_refunds(self, tally_result: TallyResult, stakes: List[StakeRecord]) -> List[Refund]:
        """全ステークを返還する。勝利選択肢への投票者にはボーナスを上乗せ"""
        refunds = []
        for stake in stakes:
            is_winner = stake.option == tally_result.winning_option
            bonus = self.winner_bonus if is_winner else 0.0
            refunds.append(Refund(
                voter=stake.voter,
                option=stake.option,
                original_amount=stake.raw_amount,
                refund_amount=stake.raw_amount * (1 + bonus),
                bonus=bonus,
                is_winner=is_winner,
            ))
        return refunds

    def plan_top_voter_rewards(self, top_voters: List[StakeRecord]) -> List[VoterReward]:
        """
        報酬プールを順位で配分する。
        i 位（0始まり）の配分率は (n - i) / (n (n + 1) / 2) で、合計はプール全額になる。
        """
        n = len(top_voters)
        if n == 0:
            return []
        denominator = n * (n + 1) / 2
        return [
            VoterReward(
                voter=stake.voter,
                amount=self.reward_pool * (n - i) / denominator,
                rank=i + 1,
            )
            for i, stake in enumerate(top_voters)
        ]

    def plan_distribution(
        self,
        tally_result: TallyResult,
        stakes: List[StakeRecord],
        top_voters: List[StakeRecord],
        yield_percent: float,
    ) -> DistributionPlan:
        tier = tier_for_yield(yield_percent, self.tiers)
        plan = DistributionPlan(
            proposal_id=tally_result.proposal_id,
            winning_option=tally_result.winning_option,
            winning_params=dict(tally_result.winning_params),
            yield_percent=yield_percent,
            tier=tier,
            refunds=self.plan_refunds(tally_result, stakes),
            rewards=self.plan_top_voter_rewards(top_voters),
        )
        logger.info(
            "分配計画作成: %s ティア=%s 返還=%d件 報酬=%d件 返還総額=%.6f",
            plan.proposal_id, tier.name, len(plan.refunds), len(plan.rewards),
            plan.total_refunded,
        )
        return plan
