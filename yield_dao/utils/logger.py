"""
XRPL Yield DAO - ロガーユーティリティ
全ロガーを "yield_dao" 配下にまとめ、ハンドラはパッケージロガーに一度だけ付ける。
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from yield_dao.config import Config

_ROOT_NAME = "yield_dao"
_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3


def _log_path() -> str:
    # テストから差し替えられるよう呼び出し時に解決する
    log_dir = os.path.abspath(os.getenv("YIELD_DAO_LOG_DIR", "logs"))
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, "yield_dao.log")


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if root.handlers:
        return root

    root.setLevel(logging.DEBUG)
    root.propagate = False
    formatter = logging.Formatter(_FORMAT)

    file_handler = RotatingFileHandler(
        _log_path(), maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(Config.LOG_LEVEL)
    console_handler.setFormatter(formatter)

    root.addHandler(file_handler)
    root.addHandler(console_handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    コンポーネント用ロガーを取得する（例: "StakeLedger" -> yield_dao.StakeLedger）。
    ファイル（ローテーション付き）とコンソールへの出力はパッケージロガーが受け持つ。
    """
    _configure_root()
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
