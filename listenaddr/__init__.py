from .address import Network, AddressSpec, parse, split_host_port, join_host_port
from .errors import (AddressError, UnknownNetworkError, ListenError, SocketCreationError,
                     PermissionApplicationError, PublishError)
from .rsock import listen, create_socket, restricted_umask, UnixListenTransaction, Phase
