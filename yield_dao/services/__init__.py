"""XRPL Yield DAO - 外部連携サービス"""
from yield_dao.services.notifier import TallyNotifier

__all__ = ["TallyNotifier"]
