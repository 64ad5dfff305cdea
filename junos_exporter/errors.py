"""Exception hierarchy shared by the transport, collectors and driver."""


class JunosExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(JunosExporterError):
    """Configuration file or scrape request is invalid."""


class TransportOpenError(JunosExporterError):
    """NETCONF session to the device could not be established."""

    def __init__(self, target: str, reason: object):
        self.target = target
        self.reason = reason
        super().__init__(f'could not connect to "{target}": {reason}')


class RpcExecutionError(JunosExporterError):
    """A NETCONF RPC call failed or timed out."""

    def __init__(self, reason: object):
        self.reason = reason
        super().__init__(f"could not execute netconf RPC call: {reason}")


class ReplyDecodeError(JunosExporterError):
    """An RPC reply could not be parsed as XML."""

    def __init__(self, reason: object):
        self.reason = reason
        super().__init__(f"could not unmarshal netconf reply xml: {reason}")
