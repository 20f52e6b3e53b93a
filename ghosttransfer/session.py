"""The web UI's single form session (one local user per process)."""

from ghosttransfer.services.api_client import GhostTransferClient
from ghosttransfer.services.form_controller import FormController

# Global controller reference
_controller: FormController | None = None


def get_controller() -> FormController:
    """Get the form controller. Raises if not initialized."""
    if _controller is None:
        raise RuntimeError("Session not initialized. Call init_session() first.")
    return _controller


def init_session(controller: FormController | None = None) -> FormController:
    """Install ``controller``, or create one if no session exists yet."""
    global _controller
    if controller is not None:
        _controller = controller
    elif _controller is None:
        _controller = FormController(GhostTransferClient())
    return _controller


async def close_session() -> None:
    """Cancel pending work and close the HTTP client."""
    global _controller
    if _controller is not None:
        await _controller.aclose()
        _controller = None
