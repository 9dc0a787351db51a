"""
XRPL Yield DAO - ガバナンスサービス
提案・ステーク台帳・エコブースト・集計・報酬計画を一つにまとめる。
インスタンスの寿命は組み立てる側（アプリ・テスト）が管理する。
"""
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from yield_dao.config import Config
from yield_dao.core.eco_boost import EcoBoostCalculator
from yield_dao.core.errors import InvalidOption, InvalidSentiment
from yield_dao.core.proposal import ProposalStore
from yield_dao.core.rewards import RewardPlanner
from yield_dao.core.stake_ledger import StakeLedger
from yield_dao.core.tally import TallyEngine
from yield_dao.models.proposal import Proposal
from yield_dao.models.stake import StakeRecord
from yield_dao.models.tally import DistributionPlan, RewardTier, TallyResult
from yield_dao.utils.logger import get_logger

logger = get_logger("GovernanceService")


class GovernanceService:
    """投票から集計・分配計画までの一連の操作を提供する"""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        calculator: Optional[EcoBoostCalculator] = None,
        planner: Optional[RewardPlanner] = None,
    ):
        self.clock = clock
        self.store = ProposalStore(clock=clock)
        self.ledger = StakeLedger(self.store)
        self.engine = TallyEngine(self.store, self.ledger)
        self.calculator = calculator or EcoBoostCalculator()
        self.planner = planner or RewardPlanner()

    def create_proposal(
        self,
        title: str,
        description: str,
        options: Sequence,
        duration_seconds: Optional[float] = None,
        eco_options: Optional[Sequence[bool]] = None,
    ) -> Proposal:
        if duration_seconds is None:
            duration_seconds = Config.DEFAULT_VOTE_DURATION
        proposal_id = self.store.create_proposal(
            title, description, options, duration_seconds, eco_options=eco_options,
        )
        return self.store.get_proposal(proposal_id)

    def get_proposal(self, proposal_id: str) -> Proposal:
        return self.store.get_proposal(proposal_id)

    def cast_vote(
        self,
        proposal_id: str,
        voter: str,
        option_name: str,
        raw_amount: float,
        sentiment_score: Optional[float] = None,
    ) -> StakeRecord:
        """
        投票（ステーク）を行う。エコ選択肢の場合は投票時点のセンチメントでブーストを決める。

        Args:
            proposal_id: 提案ID
            voter: 投票者アドレス
            option_name: 選択肢名
            raw_amount: ステーク量
            sentiment_score: 外部から取得したセンチメント [0, 1]（エコ選択肢では必須）

        検証順は台帳と同じ（提案の存在 → 受付状態 → 選択肢 → センチメント）。
        """
        proposal = self.store.get_proposal(proposal_id)
        self.ledger.ensure_open(proposal)
        option = proposal.get_option(option_name)
        if option is None:
            raise InvalidOption(f"Invalid option: {option_name}")

        boost = 1.0
        if option.is_eco:
            if sentiment_score is None:
                raise InvalidSentiment(
                    f"Sentiment score is required for eco option {option_name}"
                )
            boost = self.calculator.boost_for(option, sentiment_score)

        return self.ledger.cast_stake(proposal_id, voter, option_name, raw_amount, boost)

    def get_stakes(self, proposal_id: str) -> List[StakeRecord]:
        return self.ledger.get_stakes_for_proposal(proposal_id)

    def tally(self, proposal_id: str) -> TallyResult:
        return self.engine.tally(proposal_id)

    def top_voters(self, proposal_id: str, limit: Optional[int] = None) -> List[StakeRecord]:
        if limit is None:
            limit = Config.TOP_VOTERS_LIMIT
        return self.engine.top_voters(proposal_id, limit)

    def tier_for_yield(self, yield_percent: float) -> RewardTier:
        return self.engine.tier_for_yield(yield_percent)

    def distribution_plan(
        self, proposal_id: str, yield_percent: float, limit: Optional[int] = None
    ) -> DistributionPlan:
        """集計（未集計なら確定させる）結果から報酬分配計画を作る"""
        result = self.tally(proposal_id)
        return self.planner.plan_distribution(
            result,
            self.get_stakes(proposal_id),
            self.top_voters(proposal_id, limit),
            yield_percent,
        )

    def add_tally_listener(self, callback: Callable[[TallyResult], None]):
        self.engine.add_listener(callback)

    def active_summaries(self, now: Optional[datetime] = None) -> List[dict]:
        """受付中の提案サマリ一覧"""
        now = now or self.clock()
        summaries = []
        for proposal in self.store.list_active(now):
            snapshot = self.ledger.snapshot(proposal.id)
            summaries.append(proposal.to_summary(
                now,
                total_staked=snapshot.total_raw,
                participant_count=len(snapshot.stakes),
            ))
        return summaries
