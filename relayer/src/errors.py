"""Error taxonomy for the price feed relayer.

Only the window scheduler decides whether a failure is retried or the window
is abandoned; every component below it raises one of these.
"""


class RelayerError(Exception):
    """Base exception for relayer errors."""

    pass


class ConfigurationError(RelayerError):
    """Raised when the startup configuration is unusable (fatal)."""

    pass


class NetworkUnreachable(RelayerError):
    """Raised when none of the candidate RPC endpoints answers a probe."""

    pass


class AggregationEmptyResult(RelayerError):
    """Raised when the aggregation service returns no usable price batch."""

    pass


class EncodingError(RelayerError):
    """Raised when price data cannot be encoded into a call payload."""

    pass


class SubmissionError(RelayerError):
    """Raised when a transaction is rejected, reverts or is not confirmed.

    :ivar nonce: Nonce of the failed transaction, if one was assigned.
    :ivar pair: Display name of the pair, in per-pair submission mode.
    """

    def __init__(
        self, message: str, nonce: int | None = None, pair: str | None = None
    ) -> None:
        """Initialize the submission error.

        :param message: Error description.
        :param nonce: Transaction nonce, if known.
        :param pair: Pair display name, if applicable.
        """
        self.nonce = nonce
        self.pair = pair
        context = []
        if pair is not None:
            context.append(f"pair={pair}")
        if nonce is not None:
            context.append(f"nonce={nonce}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class HeartbeatError(RelayerError):
    """Raised when a heartbeat could not be delivered. Never escapes the reporter."""

    pass
