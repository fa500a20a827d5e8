"""Capability gate: rejects element types the backend cannot run natively."""

import logging

from .backend import Backend
from .errors import UnsupportedPrecision
from .params import ElementType

logger = logging.getLogger(__name__)


def check_capability(backend: Backend, element_type: ElementType) -> None:
    """Raise UnsupportedPrecision if the backend lacks native double precision."""
    if element_type.is_double and not backend.supports(element_type):
        message = (
            "The target device doesn't support native double precision "
            f"floating point arithmetic ({element_type.routine})"
        )
        logger.warning("%s; test skipped", message)
        raise UnsupportedPrecision(message)
