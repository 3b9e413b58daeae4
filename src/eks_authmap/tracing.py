"""OpenTelemetry tracing helpers for auth ConfigMap operations.

Reads and writes against the Kubernetes API emit spans with ``authmap.*``
attributes. Error messages are sanitized before they are recorded.

Example:
    >>> from eks_authmap.tracing import get_tracer, authmap_span
    >>> tracer = get_tracer()
    >>> with authmap_span(tracer, "fetch", name="aws-auth", namespace="kube-system"):
    ...     pass
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Iterator

TRACER_NAME = "eks_authmap"

ATTR_OPERATION = "authmap.operation"
ATTR_NAME = "authmap.configmap.name"
ATTR_NAMESPACE = "authmap.configmap.namespace"
ATTR_ARN = "authmap.arn"

_SENSITIVE_KEY_PATTERN = re.compile(
    r"(password|secret_key|access_key|token|api_key|authorization|credential)"
    r"\s*[=:]\s*\S+",
    re.IGNORECASE,
)
_URL_CREDENTIAL_PATTERN = re.compile(r"://[^@/\s]+:[^@/\s]+@")


def sanitize_error_message(msg: str, max_length: int = 500) -> str:
    """Redact credentials from an error message and truncate it.

    Example:
        >>> sanitize_error_message("Unauthorized: token=abc123")
        'Unauthorized: token=<REDACTED>'
    """
    sanitized = _URL_CREDENTIAL_PATTERN.sub("://<REDACTED>@", msg)
    sanitized = _SENSITIVE_KEY_PATTERN.sub(
        lambda m: m.group(0).split("=", 1)[0].split(":", 1)[0] + "=<REDACTED>"
        if "=" in m.group(0)
        else m.group(0).split(":", 1)[0] + ": <REDACTED>",
        sanitized,
    )
    return sanitized[:max_length]


def get_tracer() -> trace.Tracer:
    """Return the tracer for auth ConfigMap operations.

    Falls back to a no-op tracer when no tracer provider is configured.
    """
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def authmap_span(
    tracer: trace.Tracer,
    operation: str,
    *,
    name: str | None = None,
    namespace: str | None = None,
    arn: str | None = None,
    extra_attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Context manager for creating auth ConfigMap operation spans.

    Args:
        tracer: OpenTelemetry tracer instance.
        operation: Operation name (e.g. "fetch", "save").
        name: ConfigMap name.
        namespace: ConfigMap namespace.
        arn: Principal ARN involved, if any.
        extra_attributes: Additional span attributes.

    Yields:
        The active span for adding custom attributes.
    """
    attributes: dict[str, Any] = {ATTR_OPERATION: operation}
    if name is not None:
        attributes[ATTR_NAME] = name
    if namespace is not None:
        attributes[ATTR_NAMESPACE] = namespace
    if arn is not None:
        attributes[ATTR_ARN] = arn
    if extra_attributes:
        attributes.update(extra_attributes)

    with tracer.start_as_current_span(f"authmap.{operation}", attributes=attributes) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            sanitized = sanitize_error_message(str(e))
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.set_attribute("exception.type", type(e).__name__)
            span.set_attribute("exception.message", sanitized)
            raise


__all__ = [
    "ATTR_ARN",
    "ATTR_NAME",
    "ATTR_NAMESPACE",
    "ATTR_OPERATION",
    "TRACER_NAME",
    "authmap_span",
    "get_tracer",
    "sanitize_error_message",
]
