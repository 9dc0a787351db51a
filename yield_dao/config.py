"""
XRPL Yield DAO - 設定管理
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """アプリケーション設定"""

    # Flask
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret-key")
    DEBUG = os.getenv("FLASK_DEBUG", "false").lower() == "true"
    PORT = int(os.getenv("PORT", "5000"))
    SOCKETIO_ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE", "gevent")

    # エコブースト
    ECO_BOOST_MULTIPLIER = float(os.getenv("ECO_BOOST_MULTIPLIER", "1.75"))
    ECO_BOOST_THRESHOLD = float(os.getenv("ECO_BOOST_THRESHOLD", "0.7"))

    # 投票
    DEFAULT_VOTE_DURATION = int(os.getenv("DEFAULT_VOTE_DURATION", "3600"))  # 秒
    TOP_VOTERS_LIMIT = int(os.getenv("TOP_VOTERS_LIMIT", "10"))

    # 報酬
    WINNER_BONUS = float(os.getenv("WINNER_BONUS", "0.1"))
    REWARD_POOL = float(os.getenv("REWARD_POOL", "10"))

    # 通知
    DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL", "")

    # ログ
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()  # コンソール出力のレベル


# ============================================================
# 報酬ティア定義（min_yield 昇順）
# ============================================================
REWARD_TIERS = {
    "bronze": {
        "min_yield": 40,
        "reward_value": 50,
        "color": "#CD7F32",
    },
    "silver": {
        "min_yield": 60,
        "reward_value": 75,
        "color": "#C0C0C0",
    },
    "gold": {
        "min_yield": 80,
        "reward_value": 100,
        "color": "#FFD700",
    },
    "platinum": {
        "min_yield": 95,
        "reward_value": 150,
        "color": "#E5E4E2",
    },
}
