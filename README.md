# pgwsim

A compact packet-gateway simulator. The server takes IMSIs sent over UDP in
BCD form. For each one it opens or prolongs a session, writes a CDR line to a
CSV file and replies with `created` or `rejected`. An HTTP endpoint lets you
check whether a subscriber is active and stop the server. The client sends
IMSIs to the server, either one at a time or from an interactive prompt.

## Installation

```
pip install .
```

Python 3.10 or later is required. The package has no runtime dependencies.
To run the tests, install the `test` extra (`pip install .[test]`) and run
`pytest`.

## Server

```
pgw-server server_config.json
```

Example `server_config.json`:

```json
{
    "udp_ip": "0.0.0.0",
    "udp_port": 9000,
    "session_timeout_sec": 30,
    "cdr_file": "cdr.log",
    "http_port": 8080,
    "graceful_shutdown_rate": 10,
    "log_file": "pgw.log",
    "log_level": "INFO",
    "console_output": true,
    "blacklist": ["001010123456789", "001010000000001"]
}
```

- `udp_ip` must be a non-empty IPv4 address.
- Ports must be in the range 1–65535.
- `session_timeout_sec` must be positive.
- `graceful_shutdown_rate` must not be negative. During shutdown, at most this
  many sessions are closed per second; `0` closes all of them at once.
- `log_level` is one of `TRACE`, `DEBUG`, `INFO`, `WARN`, `ERROR`, `CRITICAL`, `OFF`.
- Logging is set up only when `log_file` is non-empty; log lines are appended
  to that file, and also printed to standard output when `console_output` is
  `true`. With no `log_file`, nothing is logged.
- Each blacklist entry must be 1–15 digits.

An invalid configuration makes `pgw-server` print
`Failed to initialize server: ...` and exit with status 1. An error while
running exits with status 2.

The server decodes each UDP datagram as a BCD IMSI and replies with:

- `created` – a session was opened or prolonged;
- `rejected` – the IMSI is not 10–15 digits or is on the blacklist;
- `error` – the datagram could not be decoded.

Sessions expire `session_timeout_sec` seconds after their last request;
expired sessions are removed every 5 seconds.

HTTP endpoints:

- `GET /health` returns `{"status":"ok"}`.
- `GET /check_subscriber?imsi=<IMSI>` returns `active` or `not active`. Without the `imsi` parameter it returns status 400.
- `GET /stop` begins a graceful shutdown. SIGINT and SIGTERM do the same.
- Any other path returns status 404.

CDRs are queued and appended to `cdr_file` every 100 ms. Each line has the
form `YYYY-MM-DD HH:MM:SS,<imsi>,<action>` (local time). The action is one of:

- `created`
- `prolonged`
- `expired`
- `rejected_blacklist`
- `graceful_removal`

## Client

Interactive mode (enter `q` or `quit`, or end the input, to leave):

```
pgw-client client_config.json
```

Single request:

```
pgw-client client_config.json 001010123456789
```

Example `client_config.json`:

```json
{
    "server_ip": "127.0.0.1",
    "server_port": 9000,
    "log_file": "client.log",
    "log_level": "INFO",
    "console_output": false
}
```

`server_ip` and `server_port` are required; `log_level` defaults to `INFO`.
The client waits up to 2 seconds for a reply.

A valid IMSI has 10 to 15 digits. The client prints the server's reply. If the
request cannot be made, it prints one of these instead:

- `invalid_imsi` – the IMSI is not 10–15 digits;
- `bcd_error` – the IMSI could not be encoded;
- `network_error` – sending failed or no reply arrived in time;
- `client_error` – the UDP transport could not be set up (for example, an
  invalid `server_ip`).

## Library use

```python
from pgwsim.bcd import imsi_to_bcd, bcd_to_imsi, validate_imsi

data = imsi_to_bcd("12345678901")   # b"\x21\x43\x65\x87\x09\xf1"
assert bcd_to_imsi(data) == "12345678901"
assert not validate_imsi("12345")
```

Each digit goes into one nibble, low nibble first. When the IMSI has an odd
number of digits, the last byte is padded with `0xF`. `bcd_to_imsi` stops at
the first `0xF` nibble and raises `ValueError` on any other nibble above 9.

Other building blocks:

- `pgwsim.config` – `load_client_config`, `load_server_config`, the frozen
  dataclasses `ClientConfig` and `ServerConfig`, and `ConfigError`.
- `pgwsim.session.SessionManager` – sessions with expiry, blacklist and CDR
  records.
- `pgwsim.cdr.CdrManager` – background CDR file writer; usable as a context
  manager.
- `pgwsim.udp` – `UdpClient`, `UdpServer` and `UdpError`.
- `pgwsim.httpserver.HttpServer` – threaded HTTP server with GET routes.
- `pgwsim.server.PgwServer` and `pgwsim.client.PgwClient` – the server and
  client behind the two commands.

## Limitations

- Sessions are kept in memory only; they are lost when the server stops.
- Networking is IPv4 only.
- Client replies longer than 1023 bytes are cut off.
- There is no load-testing tool.