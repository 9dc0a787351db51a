"""
XRPL Yield DAO - ステーク台帳
投票者ごとのステークを記録し、選択肢ごとの集計値をインクリメンタルに維持する。
"""
import itertools
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from fractions import Fraction
from typing import Callable, Dict, List, Optional

from yield_dao.core.errors import (
    InvalidAmount,
    InvalidOption,
    InvalidVoter,
    ProposalClosed,
    ProposalExpired,
)
from yield_dao.core.proposal import ProposalStore
from yield_dao.models.proposal import Proposal, ProposalStatus
from yield_dao.models.stake import StakeRecord
from yield_dao.utils.logger import get_logger

logger = get_logger("StakeLedger")


@dataclass(frozen=True)
class OptionTotals:
    raw_total: float
    boosted_total: float
    voter_count: int


@dataclass
class _RunningTotals:
    # 加算・減算の順序で結果が変わらないよう有理数で保持する
    raw: Fraction = Fraction(0)
    boosted: Fraction = Fraction(0)
    voters: int = 0

    def add(self, stake: StakeRecord):
        self.raw += Fraction(stake.raw_amount)
        self.boosted += Fraction(stake.boosted_amount)
        self.voters += 1

    def remove(self, stake: StakeRecord):
        self.raw -= Fraction(stake.raw_amount)
        self.boosted -= Fraction(stake.boosted_amount)
        self.voters -= 1

    def freeze(self) -> OptionTotals:
        return OptionTotals(
            raw_total=float(self.raw),
            boosted_total=float(self.boosted),
            voter_count=self.voters,
        )


@dataclass
class LedgerSnapshot:
    """提案ロック下で取得したステークと集計値の一貫したスナップショット"""
    proposal_id: str
    stakes: List[StakeRecord] = field(default_factory=list)
    totals: Dict[str, OptionTotals] = field(default_factory=dict)

    @property
    def total_raw(self) -> float:
        return float(sum(Fraction(s.raw_amount) for s in self.stakes))


class StakeLedger:
    """ステークの記録・置換と選択肢別集計を管理する"""

    def __init__(self, store: ProposalStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or store.clock
        self._stakes: Dict[str, Dict[str, StakeRecord]] = {}   # proposal_id -> voter -> stake
        self._totals: Dict[str, Dict[str, _RunningTotals]] = {}  # proposal_id -> option -> totals
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._sequence = itertools.count(1)

    def lock_for(self, proposal_id: str) -> threading.RLock:
        """提案単位の排他ロックを返す（なければ作成）"""
        with self._registry_lock:
            lock = self._locks.get(proposal_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[proposal_id] = lock
            return lock

    def cast_stake(
        self,
        proposal_id: str,
        voter: str,
        option_name: str,
        raw_amount: float,
        boost_multiplier: float = 1.0,
    ) -> StakeRecord:
        """
        ステークを記録する。同じ投票者の既存ステークは丸ごと置き換える。

        Args:
            proposal_id: 提案ID
            voter: 投票者アドレス
            option_name: 選択肢名
            raw_amount: ステーク量（正の数）
            boost_multiplier: エコブースト倍率（1以上。非エコ選択肢では常に1）
        Returns:
            記録された StakeRecord
        Raises:
            ProposalNotFound, ProposalClosed, ProposalExpired,
            InvalidOption, InvalidVoter, InvalidAmount
        """
        proposal = self.store.get_proposal(proposal_id)

        with self.lock_for(proposal_id):
            now = self.clock()
            self.ensure_open(proposal, now)

            option = proposal.get_option(option_name)
            if option is None:
                raise InvalidOption(f"Invalid option: {option_name}")

            voter = self._validate_voter(voter)
            amount = self._validate_amount(raw_amount)
            boost = self._validate_boost(boost_multiplier)

            # 非エコ選択肢にブーストは乗らない
            if not option.is_eco:
                boost = 1.0

            stake = StakeRecord(
                proposal_id=proposal_id,
                voter=voter,
                option=option_name,
                raw_amount=amount,
                boost_multiplier=boost,
                boosted_amount=amount * boost,
                timestamp=now,
                sequence=next(self._sequence),
            )

            stakes = self._stakes.setdefault(proposal_id, {})
            totals = self._totals.setdefault(proposal_id, {})

            previous = stakes.pop(voter, None)
            if previous is not None:
                totals[previous.option].remove(previous)
                logger.info(
                    "再投票: %s %s %.6f(%s) -> %.6f(%s)",
                    proposal_id, voter, previous.boosted_amount, previous.option,
                    stake.boosted_amount, option_name,
                )

            stakes[voter] = stake
            totals.setdefault(option_name, _RunningTotals()).add(stake)

        logger.debug(
            "ステーク記録: %s voter=%s option=%s raw=%.6f boost=%.4f",
            proposal_id, voter, option_name, amount, boost,
        )
        return stake

    def get_stakes_for_proposal(self, proposal_id: str) -> List[StakeRecord]:
        """提案の現在のステーク一覧を返す（順序に意味はない）"""
        self.store.get_proposal(proposal_id)
        with self.lock_for(proposal_id):
            return list(self._stakes.get(proposal_id, {}).values())

    def option_totals(self, proposal_id: str) -> Dict[str, OptionTotals]:
        """インクリメンタルに維持している選択肢別集計値"""
        proposal = self.store.get_proposal(proposal_id)
        with self.lock_for(proposal_id):
            running = self._totals.get(proposal_id, {})
            return {
                name: running.get(name, _RunningTotals()).freeze()
                for name in proposal.option_names
            }

    def recompute_totals(self, proposal_id: str) -> Dict[str, OptionTotals]:
        """全ステークから選択肢別集計値を再計算する"""
        proposal = self.store.get_proposal(proposal_id)
        with self.lock_for(proposal_id):
            running = {name: _RunningTotals() for name in proposal.option_names}
            for stake in self._stakes.get(proposal_id, {}).values():
                running[stake.option].add(stake)
            return {name: totals.freeze() for name, totals in running.items()}

    def snapshot(self, proposal_id: str, recompute: bool = False) -> LedgerSnapshot:
        """ステークと集計値を同一ロック下で取得する"""
        with self.lock_for(proposal_id):
            totals = (
                self.recompute_totals(proposal_id)
                if recompute else self.option_totals(proposal_id)
            )
            return LedgerSnapshot(
                proposal_id=proposal_id,
                stakes=self.get_stakes_for_proposal(proposal_id),
                totals=totals,
            )

    def ensure_open(self, proposal: Proposal, now: Optional[datetime] = None):
        """集計済み・期限切れの提案なら拒否する"""
        now = now or self.clock()
        if proposal.status == ProposalStatus.TALLIED:
            raise ProposalClosed(f"Proposal {proposal.id} has already been tallied")
        if proposal.is_expired(now):
            raise ProposalExpired(f"Proposal {proposal.id} has expired")

    @staticmethod
    def _validate_voter(voter) -> str:
        # 投票者アドレスが台帳のキーになる
        if not isinstance(voter, str) or not voter.strip():
            raise InvalidVoter(f"Voter must be a non-empty string: {voter!r}")
        return voter

    @staticmethod
    def _validate_amount(raw_amount) -> float:
        if isinstance(raw_amount, bool):
            raise InvalidAmount("Stake amount must be a number")
        try:
            amount = float(raw_amount)
        except (TypeError, ValueError):
            raise InvalidAmount(f"Stake amount must be a number: {raw_amount!r}")
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount(f"Stake amount must be positive: {raw_amount!r}")
        return amount

    @staticmethod
    def _validate_boost(boost_multiplier) -> float:
        try:
            boost = float(boost_multiplier)
        except (TypeError, ValueError):
            raise InvalidAmount(f"Boost multiplier must be a number: {boost_multiplier!r}")
        if not math.isfinite(boost) or boost < 1:
            raise InvalidAmount(f"Boost multiplier must be >= 1: {boost_multiplier!r}")
        return boost
