"""
XRPL Yield DAO - API アプリケーション
Flask + Flask-SocketIO による提案・ステーク・集計のJSON API
"""
from typing import Optional

from flask import Flask, jsonify, request
from flask_socketio import SocketIO, emit

from yield_dao.config import Config
from yield_dao.core.errors import GovernanceError, InvalidRequest, NotFound, ProposalClosed
from yield_dao.core.governance import GovernanceService
from yield_dao.services.notifier import TallyNotifier
from yield_dao.utils.logger import get_logger

logger = get_logger("app")


def _error_status(error: GovernanceError) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, ProposalClosed):
        return 409
    return 400


def _error_body(error: GovernanceError) -> dict:
    return {"error": str(error), "kind": error.kind}


def _as_object(data) -> dict:
    """リクエストボディ / イベントデータは JSON オブジェクトに限る"""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest(f"Request body must be a JSON object: {type(data).__name__}")
    return data


def create_app(
    service: Optional[GovernanceService] = None,
    async_mode: Optional[str] = None,
    notifier: Optional[TallyNotifier] = None,
) -> Flask:
    """
    アプリケーションを組み立てる。

    Args:
        service: GovernanceService（省略時は新規作成）
        async_mode: Flask-SocketIO の async_mode（省略時は Config.SOCKETIO_ASYNC_MODE）
        notifier: 集計結果の通知先（省略時は Webhook 設定があれば作成）
    Returns:
        Flask アプリ（socketio は app.extensions["socketio"]）
    """
    app = Flask(__name__)
    app.config.from_object(Config)

    socketio = SocketIO(
        app,
        cors_allowed_origins="*",
        async_mode=async_mode or Config.SOCKETIO_ASYNC_MODE,
    )

    # ============================================================
    # サービスの初期化
    # ============================================================
    service = service or GovernanceService()
    app.extensions["governance"] = service

    def broadcast_tally(result):
        socketio.emit("vote_tallied", result.to_dict())

    service.add_tally_listener(broadcast_tally)

    if notifier is None and Config.DISCORD_WEBHOOK_URL:
        notifier = TallyNotifier()
    if notifier is not None:
        service.add_tally_listener(notifier)

    @app.errorhandler(GovernanceError)
    def handle_governance_error(error):
        logger.info("操作拒否: %s (%s)", error, error.kind)
        return jsonify(_error_body(error)), _error_status(error)

    # ============================================================
    # ルート
    # ============================================================
    @app.route("/api/status")
    def get_status():
        """現在のサービス状態を返す"""
        proposals = service.store.list_proposals()
        return jsonify({
            "total_proposals": len(proposals),
            "active_proposals": len(service.store.list_active()),
            "eco_boost_multiplier": service.calculator.base_multiplier,
            "eco_boost_threshold": service.calculator.threshold,
        })

    @app.route("/api/proposals", methods=["GET"])
    def list_proposals():
        """受付中の提案一覧"""
        return jsonify(service.active_summaries())

    @app.route("/api/proposals", methods=["POST"])
    def create_proposal():
        """
        提案作成
        body: { "title": "...", "description": "...",
                "options": [{"name": "EcoStable", "is_eco": true, "params": {...}}, ...],
                "duration_seconds": 3600, "eco_options": [true, false] }
        """
        data = _as_object(request.get_json(silent=True))
        proposal = service.create_proposal(
            title=data.get("title", ""),
            description=data.get("description", ""),
            options=data.get("options") or [],
            duration_seconds=data.get("duration_seconds"),
            eco_options=data.get("eco_options"),
        )
        return jsonify(proposal.to_dict(service.clock())), 201

    @app.route("/api/proposals/<proposal_id>")
    def get_proposal(proposal_id):
        """提案を取得する"""
        proposal = service.get_proposal(proposal_id)
        return jsonify(proposal.to_dict(service.clock()))

    @app.route("/api/proposals/<proposal_id>/stakes", methods=["GET"])
    def get_stakes(proposal_id):
        stakes = service.get_stakes(proposal_id)
        return jsonify([s.to_dict() for s in stakes])

    @app.route("/api/proposals/<proposal_id>/stakes", methods=["POST"])
    def cast_stake(proposal_id):
        """
        ステーク
        body: { "voter": "r...", "option": "EcoStable", "amount": 15, "sentiment": 0.8 }
        """
        data = _as_object(request.get_json(silent=True))
        stake = service.cast_vote(
            proposal_id,
            voter=data.get("voter", ""),
            option_name=data.get("option", ""),
            raw_amount=data.get("amount"),
            sentiment_score=data.get("sentiment"),
        )
        socketio.emit("stake_cast", stake.to_dict())
        return jsonify(stake.to_dict()), 201

    @app.route("/api/proposals/<proposal_id>/tally", methods=["POST"])
    def tally_proposal(proposal_id):
        """集計する（初回で確定し、以後は同じ結果を返す）"""
        result = service.tally(proposal_id)
        return jsonify(result.to_dict())

    @app.route("/api/proposals/<proposal_id>/top-voters")
    def get_top_voters(proposal_id):
        limit = request.args.get("limit", Config.TOP_VOTERS_LIMIT, type=int)
        voters = service.top_voters(proposal_id, limit)
        return jsonify([s.to_dict() for s in voters])

    @app.route("/api/proposals/<proposal_id>/distribution", methods=["POST"])
    def get_distribution(proposal_id):
        """
        報酬分配計画
        body: { "yield_percent": 82.5, "limit": 10 }
        """
        data = _as_object(request.get_json(silent=True))
        try:
            yield_percent = float(data["yield_percent"])
        except (KeyError, TypeError, ValueError):
            raise InvalidRequest("yield_percent is required")
        limit = data.get("limit")
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
            raise InvalidRequest(f"limit must be an integer: {limit!r}")
        plan = service.distribution_plan(proposal_id, yield_percent, limit)
        return jsonify(plan.to_dict())

    @app.route("/api/tiers")
    def get_tier():
        """利回りから報酬ティアを返す"""
        yield_percent = request.args.get("yield", type=float)
        if yield_percent is None:
            raise InvalidRequest("yield is required")
        return jsonify(service.tier_for_yield(yield_percent).to_dict())

    # ============================================================
    # WebSocket イベント
    # ============================================================
    @socketio.on("connect")
    def handle_connect():
        """クライアント接続時"""
        logger.info("クライアント接続: %s", request.sid)
        emit("state_update", {"proposals": service.active_summaries()})

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        """クライアント切断時"""
        logger.info("クライアント切断: %s", request.sid)

    @socketio.on("cast_stake")
    def handle_cast_stake(data=None):
        """
        ステーク
        data: { "proposal_id": "...", "voter": "r...", "option": "...", "amount": 15, "sentiment": 0.8 }
        """
        try:
            data = _as_object(data)
            stake = service.cast_vote(
                data.get("proposal_id", ""),
                voter=data.get("voter", ""),
                option_name=data.get("option", ""),
                raw_amount=data.get("amount"),
                sentiment_score=data.get("sentiment"),
            )
        except GovernanceError as e:
            emit("error", _error_body(e))
            return
        emit("stake_cast", stake.to_dict(), broadcast=True)

    @socketio.on("tally_proposal")
    def handle_tally(data=None):
        """
        集計
        data: { "proposal_id": "..." }
        初回の vote_tallied はリスナー経由で全クライアントに送信される
        """
        try:
            data = _as_object(data)
            result = service.tally(data.get("proposal_id", ""))
        except GovernanceError as e:
            emit("error", _error_body(e))
            return
        emit("tally_result", result.to_dict())

    return app
