"""Command-line and environment configuration."""

import argparse
import os
from dataclasses import dataclass

from cloudshell.logs import VALID_FORMAT_STRINGS, VALID_LEVEL_STRINGS


@dataclass(frozen=True)
class Option:
    """A setting that can be given as a flag or an environment variable."""

    name: str
    kind: type
    default: object
    usage: str
    shorthand: str = ""


def _one_of(values):
    return "['" + "', '".join(values) + "']"


OPTIONS = (
    Option("allowed-hostnames", list, ("localhost",),
           "comma-delimited list of hostnames that are allowed to connect to the websocket", "H"),
    Option("arguments", list, (),
           "comma-delimited list of arguments that should be passed to the terminal command", "r"),
    Option("command", str, "/bin/bash", "absolute path to command to run", "t"),
    Option("connection-error-limit", int, 10,
           "number of times a connection should be re-attempted before it's considered dead", "l"),
    Option("keepalive-ping-timeout", int, 20,
           "maximum duration in seconds between a ping message and its response to tolerate", "k"),
    Option("max-buffer-size-bytes", int, 512, "maximum length of input from terminal", "B"),
    Option("log-format", str, "text",
           f"defines the format of the logs - one of {_one_of(VALID_FORMAT_STRINGS)}"),
    Option("log-level", str, "debug",
           f"defines the minimum level of logs to show - one of {_one_of(VALID_LEVEL_STRINGS)}"),
    Option("path-liveness", str, "/healthz", "url path to the liveness probe endpoint"),
    Option("path-metrics", str, "/metrics", "url path to the prometheus metrics endpoint"),
    Option("path-readiness", str, "/readyz", "url path to the readiness probe endpoint"),
    Option("path-xtermjs", str, "/xterm.js",
           "url path to the endpoint that xterm.js should attach to"),
    Option("server-addr", str, "0.0.0.0", "ip interface the server should listen on", "a"),
    Option("server-port", int, 8376, "port the server should listen on", "p"),
    Option("workdir", str, ".", "working directory", "w"),
)


@dataclass
class Settings:
    allowed_hostnames: list
    arguments: list
    command: str
    connection_error_limit: int
    keepalive_ping_timeout: int
    max_buffer_size_bytes: int
    log_format: str
    log_level: str
    path_liveness: str
    path_metrics: str
    path_readiness: str
    path_xtermjs: str
    server_addr: str
    server_port: int
    workdir: str


def _dest(option):
    return option.name.replace("-", "_")


def _env_name(option):
    return _dest(option).upper()


def _split(value):
    return value.split(",") if value else []


def build_parser():
    """Build the argument parser for every option."""
    parser = argparse.ArgumentParser(prog="cloudshell")
    for option in OPTIONS:
        flags = [f"--{option.name}"]
        if option.shorthand:
            flags.append(f"-{option.shorthand}")
        kwargs = {"dest": _dest(option), "default": None, "help": option.usage}
        if option.kind is list:
            kwargs["action"] = "append"
        elif option.kind is int:
            kwargs["type"] = int
        parser.add_argument(*flags, **kwargs)
    return parser


def _from_environment(option, raw):
    if option.kind is list:
        return _split(raw)
    if option.kind is int:
        try:
            return int(raw)
        except ValueError as err:
            raise ValueError(
                f"{_env_name(option)}: expected an integer, got {raw!r}"
            ) from err
    return raw


def load_config(argv=None, environ=None):
    """Resolve settings from flags, then the environment, then defaults."""
    environ = os.environ if environ is None else environ
    namespace = build_parser().parse_args(argv)
    values = {}
    for option in OPTIONS:
        given = getattr(namespace, _dest(option))
        env_name = _env_name(option)
        if given is not None:
            if option.kind is list:
                given = [item for chunk in given for item in _split(chunk)]
            value = given
        elif env_name in environ:
            value = _from_environment(option, environ[env_name])
        elif option.kind is list:
            value = list(option.default)
        else:
            value = option.default
        values[_dest(option)] = value
    return Settings(**values)