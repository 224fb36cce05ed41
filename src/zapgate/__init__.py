"""zapgate package."""

__all__ = ["app", "main"]


def _patch_subprocess_transport() -> None:
    """
    Silence 'Event loop is closed' from subprocess transports collected late.

    Each build step runs on one event loop that ``safe_async_run`` closes when
    the step returns. A scanner transport still referenced at that point, for
    instance from the traceback of a failed step, is only collected after the
    close, and its ``__del__`` then raises on the closed loop.
    """
    import asyncio.base_subprocess

    _original_del = asyncio.base_subprocess.BaseSubprocessTransport.__del__

    def _patched_del(self):
        try:
            _original_del(self)
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise

    asyncio.base_subprocess.BaseSubprocessTransport.__del__ = _patched_del


_patch_subprocess_transport()


def __getattr__(name: str):
    if name in __all__:
        from zapgate.cli import app, main

        return {"app": app, "main": main}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(__all__)
