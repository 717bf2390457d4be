import logging
import sys
from contextvars import ContextVar

# Context var storing the identity of the front-end user behind the current request.
current_user_id: ContextVar[str] = ContextVar("current_user_id", default="")

USER_HEADERS = ("X-Grafana-User", "X-User-Id")


def setup_logging(level: str = "INFO") -> None:
    # Per-request lines from the HTTP client are too chatty outside debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    root = logging.getLogger()
    if root.handlers:
        return  # already configured
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s user=%(user_id)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level.upper())
    # Every LogRecord needs user_id, including those from third-party loggers
    _install_log_record_factory()


def set_current_user(user_id: str | None) -> None:
    """Set the current user identity for logging (empty string when unknown)."""
    current_user_id.set(user_id or "")


def clear_current_user() -> None:
    current_user_id.set("")


_original_factory = logging.getLogRecordFactory()


def _install_log_record_factory() -> None:
    factory = logging.getLogRecordFactory()
    if getattr(factory, "__name__", "") == "_user_inject_factory":  # already installed
        return

    def _user_inject_factory(*args, **kwargs):  # type: ignore[no-untyped-def]
        record = _original_factory(*args, **kwargs)
        # Assigned after creation so extra={"user_id": ...} never collides
        record.user_id = current_user_id.get()  # type: ignore[attr-defined]
        return record

    _user_inject_factory.__name__ = "_user_inject_factory"  # for idempotence check
    logging.setLogRecordFactory(_user_inject_factory)


def user_from_headers(headers) -> str:  # type: ignore[no-untyped-def]
    for name in USER_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return "anonymous"


def user_logging_middleware(app):  # type: ignore[no-untyped-def]
    """Install a lightweight middleware that populates user context for logging.

    It does not authenticate; the dashboard front-end forwards the signed-in
    user's login in a header and that value is only used in log lines.
    """

    @app.middleware("http")
    async def _user_log(request, call_next):  # type: ignore[no-redef]
        set_current_user(user_from_headers(request.headers))
        try:
            response = await call_next(request)
        finally:
            clear_current_user()
        return response

    return app
