"""Exception classes."""


class ServiceError(Exception):
    """Represents a failure reported by a collaborator service.

    Attributes:
        service (str): name of the failing service
        message (str): human-readable error message

    """

    def __init__(self, service, message):
        """Initialize exception with service name and message."""
        super().__init__('%s: %s' % (service, message))
        self.service = service
        self.message = message


class InstallError(ServiceError):
    """Represents a failure to apply a flow rule.

    Attributes:
        rule (FlowRule): rule that was not installed

    """

    def __init__(self, rule, message):
        """Initialize exception with the rule that failed."""
        super().__init__('flow', message)
        self.rule = rule

    @classmethod
    def zofwd_from_exception(cls, rule, exc):
        """Create exception for a rule given the underlying failure."""
        message = exc.message if isinstance(exc, ServiceError) else repr(exc)
        return cls(rule, message)
