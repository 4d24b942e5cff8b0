import os
import socket
import threading
from contextlib import contextmanager
from enum import Enum, auto
from operator import itemgetter

# private programs
from .address import Network, split_host_port
from .errors import (UnknownNetworkError, SocketCreationError,
                     PermissionApplicationError, PublishError)
from .logger import get_logger_set
logger, log = get_logger_set('socket')


DEFAULT_MODE = 0o600
TEMP_SUFFIX = '.tmp'

FAMILIES = {
    Network.tcp: socket.AF_UNSPEC,
    Network.tcp4: socket.AF_INET,
    Network.tcp6: socket.AF_INET6,
}

SOCKET_TYPES = {
    Network.unix: socket.SOCK_STREAM,
    Network.unixgram: socket.SOCK_DGRAM,
    Network.unixpacket: getattr(socket, 'SOCK_SEQPACKET', None),
}

# umask is process wide. Only one thread may narrow it at a time.
_umask_lock = threading.Lock()


def to_network(network):
    try:
        return Network(network)
    except ValueError:
        raise UnknownNetworkError(network) from None


def _backlog(backlog):
    # socket.SOMAXCONN is not dynamically adjusted to reflect the real
    # system configuration, but it's harmless to go too high.
    return socket.SOMAXCONN if backlog is None else backlog


def create_socket(network, address, backlog=None):
    """
    Opens a listening TCP socket on "host:port". An empty host means every interface.
    The candidates returned by getaddrinfo are tried in turn, IPv6 first.
    When none of them can be bound, the last error is raised.
    """
    network = to_network(network)
    if network not in FAMILIES:
        raise UnknownNetworkError(network.value)

    host, port = split_host_port(address)
    info = socket.getaddrinfo(host or None, port, FAMILIES[network],
                              socket.SOCK_STREAM, 0, socket.AI_PASSIVE)

    info.sort(key=itemgetter(0), reverse=True)  # sort descending by the address family

    """
    family: Address Family
    sockaddr: Socket Address. If protocol is 6, it is four tuple (host, port, flowinfo, scope_id).
    """
    error = None
    for family, socktype, proto, canonname, sockaddr in info:
        logger.debug((family, socktype, proto, canonname, sockaddr))

        try:
            rsock = socket.socket(family, socktype, proto)
        except OSError as e:
            logger.debug(e)
            error = e
            continue

        try:
            rsock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if family == socket.AF_INET6 and not host and network == Network.tcp:
                # Listen on IPv4 too, through the IPv6 wildcard address.
                rsock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            rsock.bind(sockaddr)
            rsock.listen(_backlog(backlog))
        except OSError as e:
            logger.debug(e)
            rsock.close()
            error = e
            continue

        logger.info(f'Listening on {rsock.getsockname()}.')
        return rsock  # Succeeded to open.

    if error is None:
        error = OSError(f'No address found for {address!r}.')
    raise error


@contextmanager
def restricted_umask(mask=0o777):
    """
    Narrows the umask of this process while the block runs and restores it afterwards.
    The umask is shared by every thread, so anything another thread creates meanwhile
    is created with the narrowed mask as well. Calls of this function are serialised
    by a lock, but other code that creates files is not.
    """
    with _umask_lock:
        old = os.umask(mask)
        try:
            yield old
        finally:
            os.umask(old)


def _remove(path):
    """ Best-effort unlink. """
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f'Failed to remove {path} ({e}).')


class Phase(Enum):
    INITIAL = auto()
    TEMP_CREATED = auto()
    PERMISSION_SET = auto()
    PUBLISHED = auto()
    ROLLED_BACK = auto()


class UnixListenTransaction:
    """
    Publishes a Unix domain socket at path in three steps:
        create()          binds the socket at path + '.tmp' with umask 0777,
                          so nobody can connect to it yet.
        set_permission()  chmods the temporary file to the requested mode.
        publish()         renames the temporary file onto path.
    Nothing is observable at path until the last step, which is a single rename.
    When a step fails the socket is closed, the temporary file is removed
    and the error is raised. Each step may run only in the phase before it.
    """
    def __init__(self, network, path, backlog=None):
        self.network = to_network(network)
        if not self.network.is_unix:
            raise UnknownNetworkError(network)

        self.path = os.fspath(path)
        self.temp_path = self.path + TEMP_SUFFIX
        self.backlog = backlog
        self.sock = None
        self.phase = Phase.INITIAL

    def __repr__(self):
        return f'<{self.__class__.__name__} {self.network} {self.path!r} {self.phase.name}>'

    def _expect(self, phase):
        if self.phase is not phase:
            raise RuntimeError(f'{self!r} is not in {phase.name}.')

    def create(self):
        self._expect(Phase.INITIAL)
        socktype = SOCKET_TYPES[self.network]
        if socktype is None:
            raise UnknownNetworkError(self.network.value)

        _remove(self.temp_path)

        try:
            self.sock = socket.socket(socket.AF_UNIX, socktype)
            with restricted_umask():
                self.sock.bind(self.temp_path)
            if socktype != socket.SOCK_DGRAM:
                self.sock.listen(_backlog(self.backlog))
        except OSError as e:
            self.rollback()
            raise SocketCreationError.wrap(e, self.temp_path) from e

        self.phase = Phase.TEMP_CREATED
        logger.debug(self)

    def set_permission(self, mode):
        self._expect(Phase.TEMP_CREATED)
        try:
            os.chmod(self.temp_path, mode)
        except OSError as e:
            self.rollback()
            raise PermissionApplicationError.wrap(e, self.temp_path) from e

        self.phase = Phase.PERMISSION_SET
        logger.debug(self)

    def publish(self):
        self._expect(Phase.PERMISSION_SET)
        try:
            os.replace(self.temp_path, self.path)
        except OSError as e:
            self.rollback()
            raise PublishError.wrap(e, self.path) from e

        self.phase = Phase.PUBLISHED
        logger.debug(self)

    def rollback(self):
        logger.debug(f'Rolling back {self!r}.')
        if self.sock is not None:
            self.sock.close()
        _remove(self.temp_path)
        self.phase = Phase.ROLLED_BACK

    def detach(self):
        """ Hands the published socket over to the caller and forgets it. """
        self._expect(Phase.PUBLISHED)
        sock, self.sock = self.sock, None
        return sock


@log
def listen(network, address, mode=DEFAULT_MODE, *, backlog=None):
    """
    Opens a listening socket, like socket.create_server but taking the
    (network, address) pair made by parse().
    For unix, unixgram and unixpacket the socket file is created at address
    with the permission bits in mode, without ever being reachable at address
    with looser permissions. A stale file at address is replaced.
    mode is ignored for TCP.
    The returned socket belongs to the caller. Closing it does not remove the file.
    """
    network = to_network(network)

    if not network.is_unix:
        return create_socket(network, address, backlog=backlog)

    transaction = UnixListenTransaction(network, address, backlog=backlog)
    transaction.create()
    transaction.set_permission(mode)
    transaction.publish()
    logger.info(f'Listening on {transaction.path} ({mode:#o}).')
    return transaction.detach()
