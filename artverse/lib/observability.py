"""Logfire tracing for gallery and artwork lifecycles.

Every helper is a no-op unless the optional ``logfire`` extra is installed and
``logfire.enabled`` is set, so call sites never need to check.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from artverse.config import LogfireConfig, Settings

_logfire = None
_configured = False


def is_available() -> bool:
    return _logfire is not None and _configured


def _configure_options(config: LogfireConfig, console_options) -> dict[str, Any]:
    options: dict[str, Any] = {
        "service_name": config.service_name,
        "send_to_logfire": "if-token-present",
    }
    if config.environment:
        options["environment"] = config.environment
    if config.sample_rate != 1.0:
        options["trace_sample_rate"] = config.sample_rate
    if config.console:
        options["console"] = console_options()
    return options


def configure(settings: Settings) -> None:
    """Start logfire when the settings enable it and the package is importable."""
    global _logfire, _configured

    if not settings.logfire.enabled:
        return

    try:
        import logfire as lf
    except ImportError:
        return

    lf.configure(**_configure_options(settings.logfire, lf.ConsoleOptions))
    _logfire = lf
    _configured = True


def instrument_app(app):
    """Wrap the ASGI app in request tracing, or return it untouched."""
    if not is_available():
        return app
    return _logfire.instrument_asgi(app)


def instrument_httpx() -> None:
    """Trace calls the remote storage backend makes."""
    if is_available():
        _logfire.instrument_httpx()


@contextmanager
def span(name: str, **attrs: Any):
    """Context manager that yields a logfire span, or None if unavailable."""
    if is_available():
        with _logfire.span(name, **attrs) as s:
            yield s
    else:
        yield None


@contextmanager
def gallery_span(operation: str, gallery_id: UUID | str, **attrs: Any):
    """Span named ``gallery.<operation>`` tagged with the gallery id."""
    with span(f"gallery.{operation}", gallery_id=str(gallery_id), **attrs) as s:
        yield s


@contextmanager
def artwork_span(operation: str, gallery_id: UUID | str, **attrs: Any):
    """Span named ``artwork.<operation>``; artworks are always traced under their gallery."""
    with span(f"artwork.{operation}", gallery_id=str(gallery_id), **attrs) as s:
        yield s


def cleanup_failures(gallery_id: UUID | str, file_names: list[str]) -> None:
    """Record blobs a cascade or compensation could not remove."""
    if file_names and is_available():
        _logfire.warn(
            "gallery {gallery_id} left {count} files behind",
            gallery_id=str(gallery_id),
            count=len(file_names),
            files=file_names,
        )


def exception(msg: str, **kwargs: Any) -> bool:
    """Log an exception with traceback via logfire. Returns True if logged, False if unavailable."""
    if is_available():
        _logfire.exception(msg, **kwargs)
        return True
    return False
