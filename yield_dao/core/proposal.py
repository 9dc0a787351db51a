"""提案管理 - ProposalStore"""
import math
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from yield_dao.core.errors import InvalidProposal, ProposalNotFound
from yield_dao.models.proposal import Proposal, ProposalOption, ProposalStatus
from yield_dao.utils.logger import get_logger

logger = get_logger("ProposalStore")


def _to_option(raw) -> ProposalOption:
    """dict / ProposalOption / 名前文字列 のいずれかを ProposalOption に揃える"""
    if isinstance(raw, ProposalOption):
        return raw
    if isinstance(raw, str):
        return ProposalOption(name=raw)
    if isinstance(raw, dict):
        params = raw.get("params") or {}
        if not isinstance(params, dict):
            raise InvalidProposal("option params must be a mapping")
        return ProposalOption(
            name=raw.get("name", ""),
            is_eco=bool(raw.get("is_eco", False)),
            params=dict(params),
        )
    raise InvalidProposal(f"Unsupported option definition: {raw!r}")


class ProposalStore:
    """提案の作成と参照を管理する"""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.proposals: Dict[str, Proposal] = {}
        self._lock = threading.Lock()

    def create_proposal(
        self,
        title: str,
        description: str,
        options: Sequence,
        duration_seconds: float,
        eco_options: Optional[Sequence[bool]] = None,
    ) -> str:
        """
        新しい提案を作成する。

        Args:
            title: タイトル
            description: 説明
            options: 選択肢（{name, is_eco, params} / ProposalOption / 名前）
            duration_seconds: 投票受付期間（秒）
            eco_options: 選択肢ごとのエコフラグ（指定時は options と同じ長さ）
        Returns:
            作成された提案ID
        Raises:
            InvalidProposal: 選択肢が2未満、名前の重複・空、期間が0以下など
        """
        if not isinstance(options, (list, tuple)):
            raise InvalidProposal(f"options must be a list: {options!r}")
        parsed = [_to_option(o) for o in options]

        if len(parsed) < 2:
            raise InvalidProposal("A proposal needs at least 2 options")

        if eco_options is not None:
            if not isinstance(eco_options, (list, tuple)):
                raise InvalidProposal(f"eco_options must be a list: {eco_options!r}")
            if len(eco_options) != len(parsed):
                raise InvalidProposal(
                    f"eco_options length {len(eco_options)} does not match "
                    f"options length {len(parsed)}"
                )
            parsed = [
                ProposalOption(name=o.name, is_eco=bool(flag), params=o.params)
                for o, flag in zip(parsed, eco_options)
            ]

        names = [o.name for o in parsed]
        if any(not name for name in names):
            raise InvalidProposal("Option names must not be empty")
        if len(set(names)) != len(names):
            raise InvalidProposal(f"Duplicate option names: {names}")

        try:
            duration = float(duration_seconds)
        except (TypeError, ValueError):
            raise InvalidProposal(f"duration_seconds must be a number: {duration_seconds!r}")
        if not math.isfinite(duration) or duration <= 0:
            raise InvalidProposal("duration_seconds must be positive")

        created_at = self.clock()
        proposal = Proposal(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            options=parsed,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=duration),
        )

        with self._lock:
            self.proposals[proposal.id] = proposal

        logger.info(
            "提案作成: %s「%s」選択肢=%s 期限=%s",
            proposal.id, title, names, proposal.expires_at.isoformat(),
        )
        return proposal.id

    def get_proposal(self, proposal_id: str) -> Proposal:
        """提案を取得する（存在しなければ ProposalNotFound）"""
        proposal = self.proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(proposal_id)
        return proposal

    def list_active(self, now: Optional[datetime] = None) -> List[Proposal]:
        """期限前（expires_at > now）の提案一覧を返す"""
        now = now or self.clock()
        return [p for p in self.list_proposals() if p.expires_at > now]

    def list_proposals(self) -> List[Proposal]:
        with self._lock:
            return list(self.proposals.values())

    def mark_tallied(self, proposal_id: str, at: datetime) -> Proposal:
        """提案を集計済みに移行する（tallied からの遷移はない）"""
        proposal = self.get_proposal(proposal_id)
        if proposal.status != ProposalStatus.TALLIED:
            proposal.status = ProposalStatus.TALLIED
            proposal.tallied_at = at
        return proposal
