"""
XRPL Yield DAO - 集計・ティア判定エンジン
ブースト後ステークで勝者を決定し、利回りを報酬ティアに分類する。
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional

from yield_dao.config import REWARD_TIERS
from yield_dao.core.proposal import ProposalStore
from yield_dao.core.stake_ledger import LedgerSnapshot, StakeLedger
from yield_dao.models.proposal import Proposal
from yield_dao.models.stake import StakeRecord
from yield_dao.models.tally import OptionTally, RewardTier, TallyResult
from yield_dao.utils.logger import get_logger

logger = get_logger("TallyEngine")


def _build_tiers(table: Dict[str, dict]) -> List[RewardTier]:
    tiers = [
        RewardTier(
            name=name,
            min_yield=entry["min_yield"],
            reward_value=entry["reward_value"],
            color=entry["color"],
        )
        for name, entry in table.items()
    ]
    return sorted(tiers, key=lambda t: t.min_yield)


_DEFAULT_TIERS = _build_tiers(REWARD_TIERS)


def tier_for_yield(yield_percent: float, tiers: Optional[List[RewardTier]] = None) -> RewardTier:
    """
    利回り（%）から報酬ティアを返す。
    最下位の閾値未満でも最下位ティア（bronze）に丸める。最上位を超えるティアはない。
    """
    ordered = tiers or _DEFAULT_TIERS
    for tier in reversed(ordered):
        if yield_percent >= tier.min_yield:
            return tier
    return ordered[0]


class TallyEngine:
    """提案の集計と上位投票者の抽出を行う"""

    def __init__(
        self,
        store: ProposalStore,
        ledger: StakeLedger,
        clock: Optional[Callable[[], datetime]] = None,
        tiers: Optional[List[RewardTier]] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.clock = clock or store.clock
        self.tiers = tiers or _DEFAULT_TIERS
        self.listeners: List[Callable[[TallyResult], None]] = []
        self._results: Dict[str, TallyResult] = {}  # proposal_id -> 確定した集計結果

    def add_listener(self, callback: Callable[[TallyResult], None]):
        """集計確定時に呼ばれるリスナーを登録する"""
        self.listeners.append(callback)

    def remove_listener(self, callback: Callable[[TallyResult], None]):
        if callback in self.listeners:
            self.listeners.remove(callback)

    def _notify(self, result: TallyResult):
        for callback in list(self.listeners):
            try:
                callback(result)
            except Exception as e:
                logger.warning("集計リスナーの呼び出しに失敗: %s", e)

    def tally(self, proposal_id: str, recompute: bool = False) -> TallyResult:
        """
        提案を集計する。

        初回の集計で提案は tallied に移行し、以後のステークは受け付けない。
        2回目以降は初回の結果をそのまま返す。

        Args:
            proposal_id: 提案ID
            recompute: True の場合、インクリメンタル集計値ではなく全ステークから再計算する
        Raises:
            ProposalNotFound
        """
        proposal = self.store.get_proposal(proposal_id)

        with self.ledger.lock_for(proposal_id):
            cached = self._results.get(proposal_id)
            if cached is not None:
                return cached

            snapshot = self.ledger.snapshot(proposal_id, recompute=recompute)
            now = self.clock()
            result = self._build_result(proposal, snapshot, now)
            self._results[proposal_id] = result
            self.store.mark_tallied(proposal_id, now)

        logger.info(
            "集計完了: %s 勝者=%s (%.6f) エコ比率=%.2f%% 投票者=%d",
            proposal_id, result.winning_option,
            result.option(result.winning_option).boosted_total,
            result.eco_percentage, result.voter_count,
        )
        self._notify(result)
        return result

    def get_result(self, proposal_id: str) -> Optional[TallyResult]:
        """確定済みの集計結果（未集計ならNone）"""
        return self._results.get(proposal_id)

    def _build_result(
        self, proposal: Proposal, snapshot: LedgerSnapshot, now: datetime
    ) -> TallyResult:
        option_tallies = []
        for option in proposal.options:
            totals = snapshot.totals[option.name]
            option_tallies.append(OptionTally(
                name=option.name,
                is_eco=option.is_eco,
                raw_total=totals.raw_total,
                boosted_total=totals.boosted_total,
                voter_count=totals.voter_count,
            ))

        # 同点の場合は宣言順で先の選択肢が勝つ（厳密な > でのみ更新）
        winner = option_tallies[0]
        for option_tally in option_tallies[1:]:
            if option_tally.boosted_total > winner.boosted_total:
                winner = option_tally

        total_raw = sum(o.raw_total for o in option_tallies)
        total_boosted = sum(o.boosted_total for o in option_tallies)
        eco_boosted = sum(o.boosted_total for o in option_tallies if o.is_eco)
        eco_percentage = (eco_boosted / total_boosted) * 100 if total_boosted > 0 else 0.0

        winning_option = proposal.get_option(winner.name)
        return TallyResult(
            proposal_id=proposal.id,
            title=proposal.title,
            options=option_tallies,
            winning_option=winner.name,
            winning_params=dict(winning_option.params),
            is_winner_eco=winner.is_eco,
            total_raw=total_raw,
            total_boosted=total_boosted,
            eco_boosted_total=eco_boosted,
            eco_percentage=eco_percentage,
            voter_count=len(snapshot.stakes),
            tallied_at=now,
            is_expired=proposal.is_expired(now),
        )

    def top_voters(self, proposal_id: str, limit: int) -> List[StakeRecord]:
        """
        ブースト後ステークの降順で上位投票者を返す。
        同額の場合は先にステークした投票者を優先する。ステークがなければ空リスト。
        """
        self.store.get_proposal(proposal_id)
        if limit <= 0:
            return []
        stakes = self.ledger.get_stakes_for_proposal(proposal_id)
        ranked = sorted(stakes, key=lambda s: (-s.boosted_amount, s.timestamp, s.sequence))
        return ranked[:limit]

    def tier_for_yield(self, yield_percent: float) -> RewardTier:
        return tier_for_yield(yield_percent, self.tiers)
