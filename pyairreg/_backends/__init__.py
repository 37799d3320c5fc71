"""
Backend selection and management.

Only the CPU (NumPy/SciPy, FP64) backend ships; the selector keeps the
'auto' / 'cpu' vocabulary so callers can pin the backend explicitly.
"""

from .base import BackendBase, LinearModelResult
from .cpu_fp64_backend import CPUBackendFP64


def get_backend(backend: str = 'auto') -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str
        Backend selection:
        - 'auto': Best available (currently always CPU)
        - 'cpu': CPU with NumPy (FP64, R-compatible)

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('cpu')
    >>> backend.name
    'cpu_fp64'
    """
    if isinstance(backend, BackendBase):
        return backend
    if backend in ('auto', 'cpu'):
        return CPUBackendFP64()
    raise ValueError(
        f"Unknown backend: '{backend}'\n"
        f"Valid options: 'auto', 'cpu'"
    )


def list_available_backends() -> list:
    """List names of available backends."""
    return ['cpu']


__all__ = [
    'get_backend',
    'list_available_backends',
    'BackendBase',
    'LinearModelResult',
    'CPUBackendFP64',
]
