"""ステーク データモデル"""
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class StakeRecord:
    proposal_id: str
    voter: str
    option: str
    raw_amount: float
    boost_multiplier: float
    boosted_amount: float
    timestamp: datetime = field(default_factory=datetime.now)
    sequence: int = 0  # 台帳内の記録順（同時刻の先着判定用）

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "voter": self.voter,
            "option": self.option,
            "raw_amount": self.raw_amount,
            "boost_multiplier": self.boost_multiplier,
            "boosted_amount": self.boosted_amount,
            "timestamp": self.timestamp.isoformat(),
            "sequence": self.sequence,
        }
