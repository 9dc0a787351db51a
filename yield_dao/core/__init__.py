"""XRPL Yield DAO - ガバナンスコア"""
from yield_dao.core.eco_boost import EcoBoostCalculator, compute_boost
from yield_dao.core.governance import GovernanceService
from yield_dao.core.proposal import ProposalStore
from yield_dao.core.rewards import RewardPlanner
from yield_dao.core.stake_ledger import StakeLedger
from yield_dao.core.tally import TallyEngine, tier_for_yield

__all__ = [
    "EcoBoostCalculator",
    "GovernanceService",
    "ProposalStore",
    "RewardPlanner",
    "StakeLedger",
    "TallyEngine",
    "compute_boost",
    "tier_for_yield",
]
