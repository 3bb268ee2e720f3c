"""Flask adapter for the token-info engine.

The engine itself is a plain `verify(token) -> VerifyResponse` call. This
module exposes it to a host over HTTP:

- `POST /verify` with `{"token": "..."}` answers `{"success": bool, "status": int}`
- `TokenInfoExtension.require()` protects other routes with the same checks
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g, jsonify, request

from .errors import MissingToken
from .extractors import BearerExtractor
from .verifier import UnsecuredJWTVerifier

if TYPE_CHECKING:
    from .config import VerifierConfig
    from .protocols import Extractor, TokenVerifier, ViewFunc

_EXT_KEY: Final[str] = "token_info"
"""Flask extensions registry key for TokenInfoExtension."""


class TokenInfoExtension:
    """
    Flask glue for token verification.

    Responsibilities:
    - Serve the host invocation interface at `POST <prefix>/verify`
    - Extract bearer tokens for protected routes
    - Store the VerifyResponse in `flask.g.token_info`
    - Convert rejected tokens to HTTP 401 (abort)

    Pattern:
        ext = TokenInfoExtension(verifier)
        ext.init_app(app)

    Usage:
        @app.get("/topics")
        @ext.require()
        def topics(): ...
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        extractor: Extractor | None = None,
    ) -> None:
        self._verifier: TokenVerifier = verifier
        self._extractor: Extractor = extractor or BearerExtractor()

    def init_app(self, app: Flask, *, url_prefix: str = "") -> None:
        """Register the verify endpoint and the extension on `app`.

        Args:
            app (Flask): The Flask application instance.
            url_prefix (str, optional): Prefix for the verify route. Defaults to "".
        """
        app.add_url_rule(
            f"{url_prefix.rstrip('/')}/verify",
            endpoint="token_info_verify",
            view_func=self._verify_view,
            methods=["POST"],
        )
        app.extensions[_EXT_KEY] = self

    def _verify_view(self) -> Any:
        # Verification failures are answered with 200; the status carries the outcome.
        payload = request.get_json(silent=True)
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str):
            token = ""
        return jsonify(self._verifier.verify(token).to_dict())

    def require(self) -> Callable[[ViewFunc], ViewFunc]:
        """Decorator to protect Flask routes with token verification.

        Error mapping:
        - ``MissingToken``     -> HTTP 401 (\"Missing Authorization header\", ...)
        - Any non-OK status    -> HTTP 401 (\"Token rejected: <STATUS>\")

        Side Effects:
                - Writes the VerifyResponse to ``flask.g.token_info`` before
                  calling the view.
                - May terminate request handling early via ``flask.abort``.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    token = self._extractor.extract()
                except MissingToken as e:
                    abort(e.error_code, description=e.description)

                response = self._verifier.verify(token)
                if not response.success:
                    abort(401, description=f"Token rejected: {response.status.name}")

                g.token_info = response
                return view(*args, **kwargs)

            return wrapper

        return decorator


def create_app(config: VerifierConfig) -> Flask:
    """Build a Flask app serving the verify endpoint for `config`."""
    app = Flask(__name__)
    TokenInfoExtension(UnsecuredJWTVerifier(config)).init_app(app)
    return app
