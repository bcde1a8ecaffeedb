"""Exception hierarchy for the bot.

Everything except ConfigError is isolated to a single account/task by the
orchestrator. ConfigError is the only kind allowed to stop the process.
"""


class ClaimbotError(Exception):
    """Base for claimbot."""

    pass


class ConfigError(ClaimbotError):
    pass


class InvalidCredential(ClaimbotError):
    def __init__(self, account: str, reason: str):
        super().__init__(f"{account}: {reason}")
        self.account = account
        self.reason = reason


class EndpointUnavailable(ClaimbotError):
    def __init__(self, endpoint: str | None, reason: str):
        where = endpoint or "all endpoints"
        super().__init__(f"{where}: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class RpcError(EndpointUnavailable):
    """The node answered, but with an error payload."""

    def __init__(self, endpoint: str, status_code: int, message: str):
        super().__init__(endpoint, f"HTTP {status_code} {message}")
        self.status_code = status_code
        self.message = message


class AccountNotFound(ClaimbotError):
    def __init__(self, account: str):
        super().__init__(f"Account {account} not found")
        self.account = account


class FeeExceedsPolicy(ClaimbotError):
    def __init__(self, fee: float, max_fee: float):
        super().__init__(f"Withdraw fee ({fee}%) is greater than the maximum allowed fee ({max_fee}%)")
        self.fee = fee
        self.max_fee = max_fee


class SubmissionFailure(ClaimbotError):
    def __init__(self, account: str, reason: str, *, endpoint: str | None = None):
        super().__init__(f"{account}: {reason}")
        self.account = account
        self.reason = reason
        self.endpoint = endpoint


class RowShapeError(ClaimbotError, ValueError):
    def __init__(self, kind: str, row, reason: str):
        super().__init__(f"Unexpected {kind} row ({reason}): {row!r}")
        self.kind = kind
        self.row = row
