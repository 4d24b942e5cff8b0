class AddressError(ValueError):
    """ A host:port string could not be split. """
    def __init__(self, reason, address):
        super().__init__(f'{reason} in address {address!r}')
        self.reason = reason
        self.address = address


class UnknownNetworkError(ValueError):
    def __init__(self, network):
        super().__init__(f'Unknown network ({network!r}).')
        self.network = network


class ListenError(OSError):
    """
    Base class of the failures while a Unix domain socket is being created.
    errno, strerror and filename are copied from the OSError which caused it,
    and the original is kept as __cause__.
    """
    step = 'listen'

    @classmethod
    def wrap(cls, exc, filename=None):
        if filename is None:
            filename = exc.filename
        return cls(exc.errno, f'{cls.step}: {exc.strerror or exc}', filename)


class SocketCreationError(ListenError):
    step = 'bind'


class PermissionApplicationError(ListenError):
    step = 'chmod'


class PublishError(ListenError):
    step = 'rename'
