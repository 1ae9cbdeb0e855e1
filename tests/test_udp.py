import pytest

from pgwsim.udp import UdpClient, UdpError, UdpServer


def _start_server(handler_factory):
    holder = {}
    server = UdpServer("127.0.0.1", 0, handler_factory(holder))
    holder["server"] = server
    server.start()
    return server


@pytest.fixture
def echo_server():
    def factory(holder):
        def echo(message, addr):
            holder["server"].send(message, addr)

        return echo

    server = _start_server(factory)
    yield server
    server.close()


@pytest.fixture
def silent_server():
    server = _start_server(lambda holder: (lambda message, addr: None))
    yield server
    server.close()


def test_basic_communication(echo_server):
    with UdpClient("127.0.0.1", echo_server.address[1]) as client:
        assert client.send("test message") == "test message"


def test_large_message(echo_server):
    large = "a" * 1020
    with UdpClient("127.0.0.1", echo_server.address[1]) as client:
        assert client.send(large) == large


def test_bytes_message(echo_server):
    with UdpClient("127.0.0.1", echo_server.address[1]) as client:
        assert client.send(b"\x21\x43\x65") == "!Ce"


def test_response_stops_at_nul(echo_server):
    with UdpClient("127.0.0.1", echo_server.address[1]) as client:
        assert client.send(b"ab\x00cd") == "ab"


def test_no_reply_times_out(silent_server):
    with UdpClient("127.0.0.1", silent_server.address[1], timeout=0.2) as client:
        with pytest.raises(UdpError):
            client.send("hello")


def test_handler_error_does_not_stop_server():
    def factory(holder):
        def handler(message, addr):
            if message == b"boom":
                raise RuntimeError("bad message")
            holder["server"].send(message, addr)

        return handler

    server = _start_server(factory)
    try:
        with UdpClient("127.0.0.1", server.address[1], timeout=0.3) as client:
            with pytest.raises(UdpError):
                client.send("boom")
            assert client.send("ok") == "ok"
        assert server.is_running() is True
    finally:
        server.close()


def test_start_and_stop_toggle_running():
    server = UdpServer("127.0.0.1", 0, lambda message, addr: None)
    try:
        assert server.is_running() is False
        assert server.start() is True
        assert server.is_running() is True
        server.stop()
        assert server.is_running() is False
    finally:
        server.close()


def test_start_after_close_raises():
    server = UdpServer("127.0.0.1", 0, lambda message, addr: None)
    server.close()
    with pytest.raises(UdpError):
        server.start()


def test_server_invalid_ip_raises():
    with pytest.raises(UdpError):
        UdpServer("not an ip", 0, lambda message, addr: None)


def test_server_port_in_use_raises(echo_server):
    with pytest.raises(UdpError):
        UdpServer("127.0.0.1", echo_server.address[1], lambda message, addr: None)


@pytest.mark.parametrize("ip", ["999.1.1.1", "localhost", ""])
def test_client_invalid_address_raises(ip):
    with pytest.raises(UdpError):
        UdpClient(ip, 9000)


def test_client_invalid_port_raises():
    with pytest.raises(UdpError):
        UdpClient("127.0.0.1", 70000)