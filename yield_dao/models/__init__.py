"""XRPL Yield DAO - データモデル"""
from yield_dao.models.proposal import Proposal, ProposalOption, ProposalStatus
from yield_dao.models.stake import StakeRecord
from yield_dao.models.tally import (
    DistributionPlan,
    OptionTally,
    Refund,
    RewardTier,
    TallyResult,
    VoterReward,
)

__all__ = [
    "DistributionPlan",
    "OptionTally",
    "Proposal",
    "ProposalOption",
    "ProposalStatus",
    "Refund",
    "RewardTier",
    "StakeRecord",
    "TallyResult",
    "VoterReward",
]
