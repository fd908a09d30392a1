# cloudshell

`cloudshell` is a library for the server side of a browser terminal. A web
page running xterm.js opens a websocket to an aiohttp handler built by
`cloudshell.xtermjs.handler.get_handler`. For every connection the handler
creates a short-lived shell pod in a Kubernetes namespace, waits for it to
become ready, attaches to it through the Kubernetes exec API and relays
terminal traffic in both directions until either side goes away. The pod
is deleted when the session ends.

## Modules

### `cloudshell.config`

- `OPTIONS` – every setting as an `Option` (name, kind, default, usage,
  shorthand).
- `build_parser()` – an `argparse` parser with a `--name` flag (and a
  one-letter shorthand where there is one) for each option.
- `load_config(argv=None, environ=None)` – returns a `Settings` dataclass.
  Each value comes from the command line if given, otherwise from an
  environment variable named after the option in upper case with
  underscores (`SERVER_PORT`, `ALLOWED_HOSTNAMES`, ...), otherwise from the
  default. List options (`--allowed-hostnames`, `--arguments`) may be
  repeated and are split on commas; integer environment values that do not
  parse raise `ValueError`.

Defaults: allowed hostnames `localhost`, command `/bin/bash`, no
arguments, connection error limit `10`, keepalive ping timeout `20`
seconds, max buffer size `512` bytes, log format `text`, log level
`debug`, paths `/healthz`, `/metrics`, `/readyz` and `/xterm.js`, listen
address `0.0.0.0`, port `8376`, workdir `.`.

### `cloudshell.logs`

- `Level` (`trace`, `debug`, `info`, `warn`, `error`) and `Format`
  (`json`, `text`).
- `init_logging(log_format, log_level, stream=None)` – sets the format,
  minimum level and output stream (standard error by default) of the
  package logger. Text output is `key="value"` pairs; JSON output uses
  `@timestamp`, `@level`, `@message`, `@func`, `@file` and `@data` keys.
- `with_fields(fields)` / `with_field(key, value)` – return a
  `FieldLogger` whose `trace`, `debug`, `info`, `warn` and `error` methods
  attach those fields to every record.

### `cloudshell.requestlog`

- `request_fields(request)` – host, remote address, method, protocol,
  path, URL, user agent and cookies of an aiohttp request.
- `create_request_log(request=None, fields=None)` – a `FieldLogger` with
  those fields.
- `create_memory_log()` – a `FieldLogger` with interpreter memory and
  garbage-collection statistics.
- `request_logging_middleware` – an aiohttp middleware that logs
  `request completed in <n>ms`, or `request errored out` when the handler
  raises something other than an HTTP exception.

### `cloudshell.constants`

Key sequences the terminal sends (`KEY_SEQ_BACKSPACE`,
`KEY_SEQ_UP_ARROW`, `KEY_SEQ_DOWN_ARROW`, `KEY_SEQ_LINEFEED`,
`KEY_SEQ_SIGINT`, `KEY_SEQ_EOF`) and `message_type_name(opcode)`, which
names an aiohttp `WSMsgType` (`"binary"`, `"text"`, `"close"`, `"ping"`,
`"pong"`, or `""` for anything else).

### `cloudshell.xtermjs`

- `types.TTYSize` – the resize message of the front end, with
  `from_json` and `to_json`; each field must be an integer in 0..65535.
- `types.ConsoleLogger` – fallback logger printing `[level] message`
  lines to standard output (or a given stream).
- `utils.requester_hostname(host)` – strips the port from a Host value.
- `utils.check_origin(host, allowed_hostnames, logger)` – `True` if the
  hostname is allowed, otherwise logs a warning and returns `False`.
- `handler.HandlerOpts` – handler settings, including the Kubernetes API
  host, namespace and bearer token.
- `handler.KubernetesClient` – `create_pod`, `get_pod` and `delete_pod`
  against the Kubernetes pods API.
- `handler.build_pod_spec`, `handler.pod_exec_url`,
  `handler.pod_readiness`, `handler.wait_for_pod_ready` (raises
  `PodNotReadyError` if the pod fails or succeeds before becoming ready)
  and `handler.to_pod_frame`.
- `handler.get_handler(opts)` – returns the aiohttp request handler.

## Example

```python
from aiohttp import web

from cloudshell.requestlog import request_logging_middleware
from cloudshell.xtermjs.handler import HandlerOpts, get_handler
from cloudshell.xtermjs.types import TTYSize

size = TTYSize.from_json('{"cols": 80, "rows": 24}')
print(size.cols, size.rows)  # 80 24

opts = HandlerOpts(
    allowed_hostnames=["localhost"],
    kubernetes_host="kubernetes.example.com",
    kubernetes_namespace="default",
    kubernetes_token="token",
)
app = web.Application(middlewares=[request_logging_middleware])
app.router.add_get("/xterm.js", get_handler(opts))
web.run_app(app, port=8376)
```

## Behaviour worth knowing

- Requests whose hostname is not allowed get a `403` response.
- A negative connection error limit falls back to 10; a keepalive timeout
  of one second or less falls back to 20 seconds. Pings are sent every
  half timeout and the session ends if no pong arrives within the timeout.
- Binary frames from the browser that start with byte `1` are resize
  messages and are not forwarded; everything else goes to the pod with a
  leading `0` byte, the stdin channel of the exec protocol.
- Each shell pod runs `alpine` as user and group 1000, requesting 100m CPU
  and 64Mi memory and limited to 500m CPU and 256Mi memory; the shell
  started in it is `sh`.
- TLS certificates of the Kubernetes API are not verified.

## What it does not do

- There is no command-line program: nothing starts a server for you.
  `load_config` reads the settings, but wiring them into an application
  is up to you.
- The `command`, `arguments` and `workdir` settings are read but not used
  by the handler; the shell always runs in a Kubernetes pod, never locally.
- No liveness, readiness or metrics endpoints are served; the
  corresponding path settings are only configuration values.

## Tests

The test suite uses pytest and pytest-asyncio, available through the
`test` extra.