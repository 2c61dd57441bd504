"""Built-in middleware: CORS.

Answers preflight requests itself and annotates every other
cross-origin response before the handler runs.
"""

from dataclasses import dataclass

from cyro.http.request import Request
from cyro.http.response import Response


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Standards-compliant CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (finished here with 204)
    - Simple and actual requests (CORS headers set before the handler)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Usage::

        app.add_middleware(CORSMiddleware(CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST", "PUT"),
            allow_headers=("Content-Type", "Authorization"),
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def _add_cors_headers(self, response: Response, origin: str) -> None:
        cfg = self.config

        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response.header("Access-Control-Allow-Origin", "*")
        else:
            response.header("Access-Control-Allow-Origin", origin)
            response.header("Vary", "Origin")

        if cfg.allow_credentials:
            response.header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            response.header("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))

    def _preflight(self, response: Response, origin: str, request_method: str | None) -> None:
        cfg = self.config
        self._add_cors_headers(response, origin)
        if request_method:
            response.header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))
        if cfg.allow_headers:
            response.header("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers))
        response.header("Access-Control-Max-Age", str(cfg.max_age))
        response.send(None, status=204)

    def __call__(self, request: Request, response: Response) -> None:
        origin = request.headers.get("origin")

        # No Origin header: not a CORS request
        if origin is None or not self._is_allowed_origin(origin):
            return

        if request.method.upper() == "OPTIONS":
            self._preflight(response, origin, request.headers.get("access-control-request-method"))
            return

        self._add_cors_headers(response, origin)
