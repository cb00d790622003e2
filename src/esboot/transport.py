"""
Mutual-TLS transport for talking to the secured Elasticsearch REST API.

Elasticsearch runs with Search Guard, so every request presents the admin
client certificate and trusts only the cluster's own CA.
"""

import logging
import ssl
from dataclasses import dataclass
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TLSCredentials:
    """Client certificate, key and CA bundle paths."""

    ca: Path
    cert: Path
    key: Path


def build_ssl_context(credentials: TLSCredentials) -> ssl.SSLContext:
    """
    Build the SSL context for mutual TLS.

    The server certificate is verified against the cluster CA only; the
    hostname is not checked since nodes are reached as localhost.
    """
    context = ssl.create_default_context(cafile=str(credentials.ca))
    context.check_hostname = False
    context.load_cert_chain(certfile=str(credentials.cert), keyfile=str(credentials.key))
    return context


def make_client(credentials: TLSCredentials, timeout: float) -> httpx.AsyncClient:
    """Create an AsyncClient that authenticates with the admin certificate."""
    logger.debug(f"Using client certificate {credentials.cert} with CA {credentials.ca}")
    return httpx.AsyncClient(verify=build_ssl_context(credentials), timeout=timeout)


def describe_response(response: httpx.Response) -> str:
    """Render a response the way `curl --head` would print it."""
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    if response.content:
        lines.append("")
        lines.append(response.text)
    return "\n".join(lines)
