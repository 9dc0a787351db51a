"""XRPL Yield DAO - ステーク加重ガバナンス投票と報酬ティア判定"""

__version__ = "0.1.0"
