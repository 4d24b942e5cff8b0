from collections import namedtuple
from enum import Enum
import re

# private library
from .errors import AddressError
from .logger import get_logger_set
logger, log = get_logger_set('address')


DEFAULT_PORT = '80'
UNIX_PREFIX = 'unix:'
WILDCARD = '*'

_port_number = re.compile(r'[0-9]+', flags=re.ASCII)


class Network(str, Enum):
    tcp = 'tcp'
    tcp4 = 'tcp4'
    tcp6 = 'tcp6'
    unix = 'unix'
    unixgram = 'unixgram'
    unixpacket = 'unixpacket'

    @property
    def is_unix(self):
        return self in (Network.unix, Network.unixgram, Network.unixpacket)

    def __str__(self):
        return self.value


AddressSpec = namedtuple('AddressSpec', 'network address')


def split_host_port(hostport):
    """
    Splits "host:port", "[host]:port" or "[host%zone]:port" into host and port.
    A literal IPv6 address must be enclosed in square brackets.
    Raises AddressError when the string does not have that shape.
    """
    i = hostport.rfind(':')
    if i < 0:
        raise AddressError('missing port', hostport)

    j, k = 0, 0
    if hostport.startswith('['):
        end = hostport.find(']')
        if end < 0:
            raise AddressError("missing ']'", hostport)

        if end + 1 == len(hostport):
            raise AddressError('missing port', hostport)
        elif end + 1 != i:
            # Something between ']' and the last ':'.
            if hostport[end + 1] == ':':
                raise AddressError('too many colons', hostport)
            raise AddressError('missing port', hostport)

        host = hostport[1:end]
        j, k = 1, end + 1
    else:
        host = hostport[:i]
        if ':' in host:
            raise AddressError('too many colons', hostport)

    if '[' in hostport[j:]:
        raise AddressError("unexpected '['", hostport)
    if ']' in hostport[k:]:
        raise AddressError("unexpected ']'", hostport)

    return host, hostport[i + 1:]


def join_host_port(host, port):
    """ Inverse of split_host_port. A host with a colon in it is bracketed. """
    if ':' in host:
        return f'[{host}]:{port}'
    return f'{host}:{port}'


@log
def parse(value):
    """
    Turns a listen address in the nginx "listen" directive style into
    an AddressSpec, e.g.
        '127.0.0.1:8000'    -> ('tcp', '127.0.0.1:8000')
        '127.0.0.1'         -> ('tcp', '127.0.0.1:80')
        '8000'              -> ('tcp', ':8000')
        '*:8000'            -> ('tcp', ':8000')
        '[::1]'             -> ('tcp', '[::1]:80')
        'unix:/run/app.sock'-> ('unix', '/run/app.sock')
    This function never raises. Anything unrecognised is taken as a host name
    and gets the default port.
    """
    value = value.strip()

    if value.startswith(UNIX_PREFIX):
        return AddressSpec(Network.unix, value[len(UNIX_PREFIX):].strip())

    if _port_number.fullmatch(value):
        return AddressSpec(Network.tcp, ':' + value)

    try:
        host, port = split_host_port(value)
    except AddressError as e:
        logger.debug(e)
    else:
        if host == WILDCARD:
            host = ''
        return AddressSpec(Network.tcp, join_host_port(host, port))

    # A bare IPv6 literal may still carry its brackets.
    value = value.strip('[]')
    return AddressSpec(Network.tcp, join_host_port(value, DEFAULT_PORT))
