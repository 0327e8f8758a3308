"""
例外定義 - 台帳・送金・スケジューラで使用する例外クラス
"""


class LedgerError(Exception):
    """台帳関連の例外の基底クラス"""


class ValidationError(LedgerError):
    """
    ユーザーの入力・操作が受け付けられない場合の例外

    ユーザーにそのまま返信するメッセージを持つ。システム障害ではないため
    リトライもエラーログ出力も行わない。
    """

    code = "validation_error"
    user_message = "❌ この操作は実行できません。"

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class ZeroAmountError(ValidationError):
    code = "zero_amount"
    user_message = "🤔 $0 を送る意味は...？"


class WithdrawalNotPermittedError(ValidationError):
    code = "withdrawal_not_permitted"
    user_message = "🚫 お金を受け取ることはできません。送ることだけできます。"


class SelfTransferError(ValidationError):
    code = "self_transfer"
    user_message = "🤔 自分から自分に送金しますか...？"


class InsufficientFundsError(ValidationError):
    code = "insufficient_funds"
    user_message = "💸 残高が足りません！"


class UnknownRecipientError(ValidationError):
    code = "unknown_recipient"

    def __init__(self, receiver: str):
        self.receiver = receiver
        super().__init__(f"❓ {receiver} は有効なユーザーではありません。")


class InvalidAmountError(ValidationError):
    code = "invalid_amount"
    user_message = "❌ 正しい金額を入力してください。"


class PermissionDeniedError(ValidationError):
    code = "permission_denied"
    user_message = "🔒 この操作には管理者権限が必要です。"


class StoreError(LedgerError):
    """データベースが利用できない場合の例外"""


class SchedulingError(LedgerError):
    """お小遣い送金後の通知に失敗した場合の例外（送金自体は確定済み）"""
