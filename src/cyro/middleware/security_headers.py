"""Security headers middleware: X-Frame-Options, X-Content-Type-Options, Referrer-Policy.

Middleware runs before the handler picks a body, so the headers are set
on every response that leaves the normal path. A generic 500 produced
by ``Response.server_error()`` drops them along with everything else.
"""

from dataclasses import dataclass

from cyro.http.request import Request
from cyro.http.response import Response


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    All values are applied as-is. ``None`` skips the header.
    """

    x_frame_options: str = "DENY"
    x_content_type_options: str = "nosniff"
    referrer_policy: str = "strict-origin-when-cross-origin"
    content_security_policy: str | None = (
        "default-src 'self'; base-uri 'self'; frame-ancestors 'none'; object-src 'none'"
    )
    strict_transport_security: str | None = None


class SecurityHeadersMiddleware:
    """Add common security headers to responses.

    Usage::

        from cyro.middleware import SecurityHeadersMiddleware

        app.add_middleware(SecurityHeadersMiddleware())

    Or with custom config::

        app.add_middleware(SecurityHeadersMiddleware(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
            content_security_policy=None,
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()

    def __call__(self, request: Request, response: Response) -> None:
        cfg = self.config
        response.header(
            {
                "X-Frame-Options": cfg.x_frame_options,
                "X-Content-Type-Options": cfg.x_content_type_options,
                "Referrer-Policy": cfg.referrer_policy,
            }
        )
        if cfg.content_security_policy:
            response.header("Content-Security-Policy", cfg.content_security_policy)
        if cfg.strict_transport_security:
            response.header("Strict-Transport-Security", cfg.strict_transport_security)
