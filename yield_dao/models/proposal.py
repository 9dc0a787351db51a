"""ガバナンス提案 データモデル"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ProposalStatus(Enum):
    ACTIVE = "active"
    TALLIED = "tallied"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ProposalOption:
    name: str
    is_eco: bool = False
    # 勝利時に報酬分配側へそのまま渡すパラメータ（コアでは解釈しない）
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "is_eco": self.is_eco,
            "params": dict(self.params),
        }


@dataclass
class Proposal:
    id: str
    title: str
    description: str
    options: List[ProposalOption]
    created_at: datetime
    expires_at: datetime
    status: ProposalStatus = ProposalStatus.ACTIVE
    tallied_at: Optional[datetime] = None

    @property
    def option_names(self) -> List[str]:
        return [o.name for o in self.options]

    def get_option(self, name: str) -> Optional[ProposalOption]:
        """名前で選択肢を引く（存在しなければNone）"""
        for option in self.options:
            if option.name == name:
                return option
        return None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def status_at(self, now: datetime) -> ProposalStatus:
        """
        時刻を考慮した表示用ステータス。
        expired は時刻から導出するだけで、保存される状態ではない。
        """
        if self.status == ProposalStatus.ACTIVE and self.is_expired(now):
            return ProposalStatus.EXPIRED
        return self.status

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        """フロントエンド向け辞書表現"""
        status = self.status_at(now) if now else self.status
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "options": [o.to_dict() for o in self.options],
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "status": status.value,
            "tallied_at": self.tallied_at.isoformat() if self.tallied_at else None,
        }

    def to_summary(self, now: datetime, total_staked: float, participant_count: int) -> dict:
        """一覧表示用のサマリ（残り時間・参加者数・総ステーク）"""
        remaining = max(0.0, (self.expires_at - now).total_seconds())
        return {
            "id": self.id,
            "title": self.title,
            "options": self.option_names,
            "status": self.status_at(now).value,
            "time_remaining": remaining,
            "participant_count": participant_count,
            "total_staked": total_staked,
        }
