"""TCP command channel and UDP state channel to the robot controller."""

from __future__ import annotations

import enum
import select
import socket
import struct
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "NetworkException",
    "ProtocolException",
    "IncompatibleVersionException",
    "MessageHeader",
    "HEADER_SIZE",
    "ConnectStatus",
    "Network",
    "connect",
]

_HEADER_FORMAT = struct.Struct("<III")
HEADER_SIZE = _HEADER_FORMAT.size
"""Size in bytes of the header that starts every TCP message."""

_CONNECT_FORMAT = struct.Struct("<HH")
_RECEIVE_CHUNK = 65536
_BLOCKING_POLL_INTERVAL = 0.01


class NetworkException(Exception):
    """Raised when the connection to the robot fails."""


class ProtocolException(Exception):
    """Raised when the robot sends data that does not follow the protocol."""


class IncompatibleVersionException(Exception):
    """Raised when the server does not accept this library's protocol version."""

    def __init__(self, server_version: int, library_version: int) -> None:
        super().__init__(
            f"Incompatible library version (server version: {server_version}, "
            f"library version: {library_version})."
        )
        self.server_version = server_version
        self.library_version = library_version


class ConnectStatus(enum.IntEnum):
    """Status codes of the connect handshake response."""

    SUCCESS = 0
    INCOMPATIBLE_LIBRARY_VERSION = 1


@dataclass(frozen=True)
class MessageHeader:
    """Header of a TCP message: command, command id and total message size."""

    command: int
    command_id: int
    size: int

    def pack(self) -> bytes:
        """Encode the header as little-endian 32-bit fields."""
        try:
            return _HEADER_FORMAT.pack(self.command, self.command_id, self.size)
        except struct.error as error:
            raise ValueError(f"header field out of range: {error}") from error

    @classmethod
    def unpack(cls, data: bytes) -> "MessageHeader":
        """Decode a header from the start of *data*."""
        if len(data) < HEADER_SIZE:
            raise ProtocolException("Incomplete message header.")
        return cls(*_HEADER_FORMAT.unpack_from(data))


class Network:
    """Connection to the robot: a TCP socket for commands and a UDP socket for state."""

    def __init__(
        self,
        franka_address: str,
        franka_port: int,
        tcp_timeout: float = 60.0,
        udp_timeout: float = 1.0,
        tcp_keepalive: tuple[bool, int, int, int] = (True, 1, 3, 1),
    ) -> None:
        self._tcp_lock = threading.Lock()
        self._udp_lock = threading.Lock()
        self._command_id = 0
        self._tcp_buffer = bytearray()
        self._responses: dict[int, bytes] = {}
        self._udp_server_address: Optional[tuple[str, int]] = None
        self._tcp: Optional[socket.socket] = None
        self._udp: Optional[socket.socket] = None
        try:
            self._tcp = socket.create_connection(
                (franka_address, franka_port), timeout=tcp_timeout
            )
            self._tcp.settimeout(tcp_timeout)
            enabled, idle, count, interval = tcp_keepalive
            if enabled:
                self._tcp.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
                self._set_keepalive_options(idle, count, interval)

            self._udp = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self._udp.bind(("0.0.0.0", 0))
            self._udp.settimeout(udp_timeout)
            self._udp_port = self._udp.getsockname()[1]
        except ConnectionRefusedError as error:
            self._close_sockets()
            raise NetworkException(
                "Connection to FCI refused. Please install FCI feature or enable FCI mode "
                "in Desk."
            ) from error
        except TimeoutError as error:
            self._close_sockets()
            raise NetworkException(
                "Connection timeout. Please check your network connection or settings."
            ) from error
        except OSError as error:
            self._close_sockets()
            raise NetworkException(f"Connection error: {error}") from error

    def _set_keepalive_options(self, idle: int, count: int, interval: int) -> None:
        options = (("TCP_KEEPIDLE", idle), ("TCP_KEEPCNT", count), ("TCP_KEEPINTVL", interval))
        for name, value in options:
            option = getattr(socket, name, None)
            if option is None:
                continue
            try:
                self._tcp.setsockopt(socket.IPPROTO_TCP, option, value)
            except OSError:
                pass

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the TCP connection and close both sockets."""
        if self._tcp is not None:
            try:
                self._tcp.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        self._close_sockets()

    def _close_sockets(self) -> None:
        for sock in (self._tcp, self._udp):
            if sock is not None:
                sock.close()

    def udp_port(self) -> int:
        """Return the local port the UDP socket is bound to."""
        return self._udp_port

    def udp_blocking_receive(self, size: int) -> bytes:
        """Wait for a datagram of exactly *size* bytes and return it."""
        with self._udp_lock:
            return self._udp_blocking_receive_unsafe(size)

    def udp_receive(self, size: int) -> Optional[bytes]:
        """Return a datagram of *size* bytes if one is waiting, otherwise None."""
        with self._udp_lock:
            try:
                readable, _, _ = select.select([self._udp], [], [], 0)
                if not readable:
                    return None
                try:
                    peeked = self._udp.recv(size, socket.MSG_PEEK)
                except OSError:
                    # The waiting datagram is larger than the buffer.
                    peeked = b"\0" * size
            except OSError as error:
                raise NetworkException(f"UDP receive: {error}") from error
            if len(peeked) < size:
                return None
            return self._udp_blocking_receive_unsafe(size)

    def _udp_blocking_receive_unsafe(self, size: int) -> bytes:
        try:
            data, address = self._udp.recvfrom(size)
        except OSError as error:
            raise NetworkException(f"UDP receive: {error}") from error
        self._udp_server_address = address
        if len(data) != size:
            raise ProtocolException("incorrect object size")
        return data

    def udp_send(self, data: bytes) -> None:
        """Send *data* to the address the last datagram came from."""
        with self._udp_lock:
            if self._udp_server_address is None:
                raise NetworkException("UDP send: no server address known yet")
            try:
                sent = self._udp.sendto(data, self._udp_server_address)
            except OSError as error:
                raise NetworkException(f"UDP send: {error}") from error
            if sent != len(data):
                raise NetworkException("could not send UDP data")

    def tcp_throw_if_connection_closed(self) -> None:
        """Raise NetworkException if the server has closed the TCP connection."""
        if not self._tcp_lock.acquire(blocking=False):
            return
        try:
            readable, _, _ = select.select([self._tcp], [], [], 0)
            if readable and not self._tcp.recv(1, socket.MSG_PEEK):
                raise NetworkException("server closed connection")
        except OSError as error:
            raise NetworkException(str(error)) from error
        finally:
            self._tcp_lock.release()

    def tcp_send_request(self, command: int, payload: bytes = b"") -> int:
        """Send a request for *command* and return the command id it was given."""
        with self._tcp_lock:
            header = MessageHeader(command, self._command_id, HEADER_SIZE + len(payload))
            message = header.pack() + bytes(payload)
            self._command_id = (self._command_id + 1) & 0xFFFFFFFF
            try:
                self._tcp.sendall(message)
            except OSError as error:
                raise NetworkException(f"TCP send bytes: {error}") from error
        return header.command_id

    def tcp_receive_response(self, command_id: int, handler: Callable[[bytes], None]) -> bool:
        """Without waiting, pass the response payload for *command_id* to *handler*.

        Returns True if the response was there and handled, False otherwise.
        """
        if not self._tcp_lock.acquire(blocking=False):
            return False
        try:
            self._tcp_read_from_buffer(0.0)
            payload = self._responses.pop(command_id, None)
        finally:
            self._tcp_lock.release()
        if payload is None:
            return False
        handler(payload)
        return True

    def tcp_blocking_receive_response(self, command_id: int) -> bytes:
        """Wait for the response to *command_id* and return its payload."""
        while True:
            with self._tcp_lock:
                self._tcp_read_from_buffer(_BLOCKING_POLL_INTERVAL)
                payload = self._responses.pop(command_id, None)
            if payload is not None:
                return payload
            time.sleep(0)

    def _tcp_read_from_buffer(self, timeout: float) -> None:
        try:
            _, _, errored = select.select([], [], [self._tcp], 0)
            if errored:
                raise NetworkException("TCP connection got interrupted.")
            readable, _, _ = select.select([self._tcp], [], [], timeout)
            if not readable:
                return
            chunk = self._tcp.recv(_RECEIVE_CHUNK)
        except OSError as error:
            raise NetworkException(f"TCP receive: {error}") from error
        if not chunk:
            raise NetworkException("server closed connection")
        self._tcp_buffer += chunk
        self._collect_responses()

    def _collect_responses(self) -> None:
        buffer = self._tcp_buffer
        while len(buffer) >= HEADER_SIZE:
            header = MessageHeader.unpack(buffer)
            if header.size < HEADER_SIZE:
                raise ProtocolException("Incorrect TCP message size.")
            if len(buffer) < header.size:
                break
            self._responses.setdefault(header.command_id, bytes(buffer[HEADER_SIZE : header.size]))
            del buffer[: header.size]


def connect(network: Network, command: int, library_version: int) -> int:
    """Perform the connect handshake and return the server's protocol version.

    The request payload holds the library version and the local UDP port, the
    response payload the status and the server version, each as little-endian
    16-bit values.
    """
    payload = _CONNECT_FORMAT.pack(library_version, network.udp_port())
    command_id = network.tcp_send_request(command, payload)
    response = network.tcp_blocking_receive_response(command_id)
    if len(response) < _CONNECT_FORMAT.size:
        raise ProtocolException("Incorrect TCP message size.")
    status, version = _CONNECT_FORMAT.unpack_from(response)
    if status == ConnectStatus.INCOMPATIBLE_LIBRARY_VERSION:
        raise IncompatibleVersionException(version, library_version)
    if status == ConnectStatus.SUCCESS:
        return version
    raise ProtocolException("Protocol error during connection attempt")