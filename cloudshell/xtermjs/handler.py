"""Websocket handler that relays an xterm.js session to a shell in a Kubernetes pod."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from urllib.parse import quote_plus

import aiohttp
from aiohttp import WSMsgType, web

from cloudshell.xtermjs.types import DEFAULT_LOGGER
from cloudshell.xtermjs.utils import check_origin

DEFAULT_CONNECTION_ERROR_LIMIT = 10
DEFAULT_KEEPALIVE_PING_TIMEOUT = 20.0

_CREATE_TIMEOUT = 30.0
_DELETE_TIMEOUT = 10.0
_RESIZE_MARKER = 1
_STDIN_CHANNEL = b"\x00"
_CLOSING_TYPES = frozenset(
    {WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED, WSMsgType.ERROR}
)


@dataclass
class HandlerOpts:
    """Settings for the terminal websocket handler."""

    allowed_hostnames: list = field(default_factory=list)
    arguments: list = field(default_factory=list)
    command: str = ""
    connection_error_limit: int = DEFAULT_CONNECTION_ERROR_LIMIT
    # Called with the connection id and the request; returns the connection's logger.
    create_logger: object = None
    keepalive_ping_timeout: float = DEFAULT_KEEPALIVE_PING_TIMEOUT
    max_buffer_size_bytes: int = 512
    kubernetes_host: str = ""
    kubernetes_namespace: str = "default"
    kubernetes_token: str = ""

    def effective_error_limit(self):
        """Consecutive write errors tolerated; negative values mean the default."""
        if self.connection_error_limit < 0:
            return DEFAULT_CONNECTION_ERROR_LIMIT
        return self.connection_error_limit

    def effective_keepalive_timeout(self):
        """Seconds allowed between pongs; one second or less means the default."""
        if self.keepalive_ping_timeout <= 1:
            return DEFAULT_KEEPALIVE_PING_TIMEOUT
        return self.keepalive_ping_timeout


class PodNotReadyError(Exception):
    """The pod stopped before it became ready."""


class KubernetesClient:
    """Minimal client for the pod endpoints of the Kubernetes API."""

    def __init__(self, session, base_url, namespace, token):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.namespace = namespace
        self._headers = {"Authorization": f"Bearer {token}"}

    def _pods_url(self, name=None):
        url = f"{self.base_url}/api/v1/namespaces/{self.namespace}/pods"
        return f"{url}/{name}" if name else url

    async def _request(self, method, url, **kwargs):
        async with self.session.request(method, url, headers=self._headers, **kwargs) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def create_pod(self, pod):
        """Create a pod from its manifest and return the stored object."""
        return await self._request("POST", self._pods_url(), json=pod)

    async def get_pod(self, name):
        """Return the named pod."""
        return await self._request("GET", self._pods_url(name))

    async def delete_pod(self, name):
        """Delete the named pod."""
        return await self._request("DELETE", self._pods_url(name))


def build_pod_spec(pod_name, namespace):
    """Return the manifest of the pod that hosts one shell session."""
    container = {
        "name": "shell",
        "image": "alpine",
        "command": ["tail", "-f", "/dev/null"],
        "stdin": True,
        "tty": True,
        "resources": {
            "requests": {"cpu": "100m", "memory": "64Mi"},
            "limits": {"cpu": "500m", "memory": "256Mi"},
        },
        "imagePullPolicy": "IfNotPresent",
    }
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": pod_name, "namespace": namespace},
        "spec": {
            "containers": [container],
            "restartPolicy": "Always",
            "securityContext": {"runAsUser": 1000, "runAsGroup": 1000},
        },
    }


def pod_exec_url(host, namespace, pod_name):
    """Return the websocket URL that runs a shell in the pod."""
    return (
        f"wss://{host}/api/v1/namespaces/{namespace}/pods/{pod_name}/exec"
        f"?command={quote_plus('sh')}&stdin=true&stdout=true&stderr=true&tty=true"
    )


def pod_readiness(pod):
    """Return whether the pod is ready; raise PodNotReadyError if it has terminated."""
    status = pod.get("status") or {}
    phase = status.get("phase", "")
    if phase == "Running":
        return any(
            cond.get("type") == "Ready" and cond.get("status") == "True"
            for cond in status.get("conditions") or []
        )
    if phase in ("Failed", "Succeeded"):
        raise PodNotReadyError(f"pod terminated unexpectedly with phase: {phase}")
    return False


async def wait_for_pod_ready(client, pod_name, interval=1.0):
    """Poll the pod every interval seconds until it is ready."""
    while True:
        await asyncio.sleep(interval)
        if pod_readiness(await client.get_pod(pod_name)):
            return


def to_pod_frame(is_binary, data):
    """Return client input prefixed with the stdin channel, or None for resize messages."""
    payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if is_binary and payload[:1] == bytes([_RESIZE_MARKER]):
        return None
    return _STDIN_CHANNEL + payload


def _trim_scheme(host):
    return host[len("https://"):] if host.startswith("https://") else host


async def _relay(connection, tty, opts, clog):
    timeout = opts.effective_keepalive_timeout()
    error_limit = opts.effective_error_limit()
    last_pong = time.monotonic()

    async def keepalive():
        while True:
            await asyncio.sleep(timeout / 2)
            if time.monotonic() - last_pong > timeout:
                clog.warn("Ping timeout - terminating connection")
                return
            try:
                await connection.ping(b"keepalive")
            except (ConnectionError, RuntimeError):
                clog.warn("Failed to send ping - terminating connection")
                return

    async def pod_to_client():
        error_count = 0
        while True:
            if error_count > error_limit:
                clog.warn("Error limit exceeded - terminating connection")
                return
            message = await tty.receive()
            if message.type in _CLOSING_TYPES:
                clog.warn("Failed to read from pod: %s", message.extra or message.type.name)
                return
            try:
                if message.type == WSMsgType.BINARY:
                    await connection.send_bytes(message.data)
                elif message.type == WSMsgType.TEXT:
                    await connection.send_str(message.data)
                else:
                    continue
            except (ConnectionError, RuntimeError) as err:
                clog.warn("Failed to write to client: %s", err)
                error_count += 1
                continue
            error_count = 0

    async def client_to_pod():
        nonlocal last_pong
        while True:
            message = await connection.receive()
            if message.type == WSMsgType.PING:
                await connection.pong(message.data)
                continue
            if message.type == WSMsgType.PONG:
                last_pong = time.monotonic()
                continue
            if message.type in _CLOSING_TYPES:
                clog.warn("Failed to read from client: %s", message.extra or message.type.name)
                return
            is_binary = message.type == WSMsgType.BINARY
            frame = to_pod_frame(is_binary, message.data)
            if frame is None:
                continue
            try:
                if is_binary:
                    await tty.send_bytes(frame)
                else:
                    await tty.send_str(frame.decode("utf-8", "replace"))
            except (ConnectionError, RuntimeError) as err:
                clog.warn("Failed to write to pod: %s", err)

    tasks = [asyncio.create_task(job()) for job in (keepalive, pod_to_client, client_to_pod)]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    clog.info("Terminating connection...")


async def _delete_pod(client, pod_name, clog):
    clog.info("Initiating pod cleanup...")
    try:
        await asyncio.wait_for(client.delete_pod(pod_name), _DELETE_TIMEOUT)
    except aiohttp.ClientResponseError as err:
        if err.status == 404:
            clog.info("Pod already deleted")
        else:
            clog.warn("Failed to delete pod: %s", err)
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        clog.warn("Failed to delete pod: %s", err)
    else:
        clog.info("Pod deleted successfully")


async def _attach(connection, session, client, host, pod_name, opts, clog):
    clog.info("Waiting for pod to be ready...")
    try:
        await wait_for_pod_ready(client, pod_name)
    except (PodNotReadyError, aiohttp.ClientError) as err:
        clog.warn("Pod never became ready: %s", err)
        return
    url = pod_exec_url(host, opts.kubernetes_namespace, pod_name)
    clog.debug("Connecting to pod at: %s", url)
    try:
        tty = await session.ws_connect(
            url, headers={"Authorization": f"Bearer {opts.kubernetes_token}"}
        )
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        clog.warn("Failed to connect to pod: %s", err)
        return
    try:
        await _relay(connection, tty, opts, clog)
    finally:
        await tty.close()


async def _serve(connection, opts, connection_id, clog):
    pod_name = f"xtermjs-{connection_id}"
    namespace = opts.kubernetes_namespace
    host = _trim_scheme(opts.kubernetes_host)
    connector = aiohttp.TCPConnector(ssl=False)
    async with aiohttp.ClientSession(connector=connector) as session:
        client = KubernetesClient(session, f"https://{host}", namespace, opts.kubernetes_token)
        clog.info("Creating Pod %s in namespace %s", pod_name, namespace)
        try:
            await asyncio.wait_for(
                client.create_pod(build_pod_spec(pod_name, namespace)), _CREATE_TIMEOUT
            )
        except aiohttp.ClientResponseError as err:
            clog.error("Failed to create Pod: %s", err)
            clog.error("Status: %s", err.status)
            return
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            clog.error("Failed to create Pod: %s", err)
            return
        try:
            await _attach(connection, session, client, host, pod_name, opts, clog)
        finally:
            await _delete_pod(client, pod_name, clog)


def get_handler(opts):
    """Return an aiohttp request handler serving terminal websocket sessions."""

    async def handle(request):
        connection_id = str(uuid.uuid1())
        clog = opts.create_logger(connection_id, request) if opts.create_logger else DEFAULT_LOGGER
        clog.info("established connection identity")
        if not check_origin(request.host, opts.allowed_hostnames, clog):
            clog.warn("failed to upgrade connection: %s", "request origin is not allowed")
            return web.Response(status=403, text="Forbidden")
        connection = web.WebSocketResponse(autoping=False)
        try:
            await connection.prepare(request)
        except web.HTTPException as err:
            clog.warn("failed to upgrade connection: %s", err)
            raise
        try:
            await _serve(connection, opts, connection_id, clog)
        finally:
            await connection.close()
        return connection

    return handle