"""
通知モジュール - 集計結果を Discord Webhook へ送信
"""
import requests
from datetime import datetime, timezone

from yield_dao.config import Config
from yield_dao.models.tally import TallyResult
from yield_dao.utils.logger import get_logger

logger = get_logger("TallyNotifier")

# 勝者がエコ選択肢なら緑、それ以外は青
_ECO_COLOR = 0x2ECC71
_DEFAULT_COLOR = 0x3498DB


class TallyNotifier:
    """集計結果の Discord 通知（TallyEngine のリスナーとして登録する）"""

    def __init__(self, webhook_url: str = "", timeout: float = 10):
        self.webhook_url = webhook_url or Config.DISCORD_WEBHOOK_URL
        self.timeout = timeout
        self.history: list[dict] = []

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url) and not self.webhook_url.startswith("your_")

    def __call__(self, result: TallyResult):
        self.send_tally(result)

    def send_tally(self, result: TallyResult) -> bool:
        """集計結果を1件の embed として送信し、履歴に残す"""
        entry = {
            "time": datetime.now().isoformat(),
            "proposal_id": result.proposal_id,
            "winning_option": result.winning_option,
            "sent": False,
        }
        if not self.is_configured:
            entry["error"] = "Discord Webhook URLが未設定"
        else:
            error = self._deliver(self.build_embed(result))
            entry["sent"] = error is None
            if error:
                entry["error"] = error

        self.history.append(entry)
        return entry["sent"]

    @staticmethod
    def build_embed(result: TallyResult) -> dict:
        mark = "🌱" if result.is_winner_eco else "📊"
        fields = [
            {
                "name": option.name + (" (eco)" if option.is_eco else ""),
                "value": f"{option.boosted_total:.2f} XRP / {option.voter_count}人",
                "inline": True,
            }
            for option in result.options
        ]
        return {
            "title": f"{mark} 集計完了: {result.title}",
            "description": (
                f"**勝者**: {result.winning_option}\n"
                f"**ブースト後合計**: {result.total_boosted:.2f} XRP"
                f"（生ステーク {result.total_raw:.2f} XRP）\n"
                f"**エコ比率**: {result.eco_percentage:.2f}%"
            ),
            "color": _ECO_COLOR if result.is_winner_eco else _DEFAULT_COLOR,
            "fields": fields,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": "XRPL Yield DAO"},
        }

    def _deliver(self, embed: dict):
        """Webhook に POST する。失敗時はエラー文字列、成功時は None"""
        try:
            resp = requests.post(
                self.webhook_url,
                json={"embeds": [embed]},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Webhook送信エラー: %s", e)
            return str(e)
        if resp.status_code not in (200, 204):
            logger.warning("Webhook応答異常: HTTP %s", resp.status_code)
            return f"HTTP {resp.status_code}"
        return None

    def get_history(self, limit: int = 50) -> list[dict]:
        """通知履歴（新しい順）"""
        return list(reversed(self.history[-limit:]))
