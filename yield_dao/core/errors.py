"""ガバナンスコアの例外定義"""


class GovernanceError(Exception):
    """ガバナンス操作の拒否を表す基底例外"""

    kind = "governance_error"


class InvalidProposal(GovernanceError):
    """稟議作成時の入力不備（選択肢不足・重複など）"""

    kind = "invalid_proposal"


class NotFound(GovernanceError):
    kind = "not_found"


class ProposalNotFound(NotFound):
    kind = "proposal_not_found"

    def __init__(self, proposal_id: str):
        super().__init__(f"Proposal {proposal_id} not found")
        self.proposal_id = proposal_id


class ProposalClosed(GovernanceError):
    """集計済み、または受付期間外の提案への操作"""

    kind = "proposal_closed"


class ProposalExpired(ProposalClosed):
    kind = "proposal_expired"


class InvalidOption(GovernanceError):
    kind = "invalid_option"


class InvalidAmount(GovernanceError):
    kind = "invalid_amount"


class InvalidSentiment(GovernanceError):
    kind = "invalid_sentiment"


class InvalidVoter(GovernanceError):
    """投票者アドレスが空、または文字列でない"""

    kind = "invalid_voter"


class InvalidRequest(GovernanceError):
    """API リクエストの形式不備（JSON オブジェクトでない、必須項目がない）"""

    kind = "invalid_request"
