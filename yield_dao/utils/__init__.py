"""XRPL Yield DAO - ユーティリティ"""
