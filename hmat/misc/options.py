"""
Option handling for H-matrix construction and application.
"""

from typing import Any, Dict, Optional


def hmatoptions(op: Optional[Dict[str, Any]] = None,
        **kwargs: Any) -> Dict[str, Any]:
    """
    Set standard options for H-matrix construction.

    Parameters
    ----------
    op : dict, optional
        Option dictionary from previous call
    **kwargs : dict
        Additional property name-value pairs

    Returns
    -------
    op : dict
        Dictionary with standard or user-defined options

    Notes
    -----
    eta
        Admissibility parameter of the default strong admissibility
    max_workers
        Number of threads used by initialize and apply (1 = serial)
    output
        Log summaries at INFO level instead of DEBUG
    htol
        Tolerance handed through to compression strategies
    """
    if op is None:
        op = {}
        op['eta'] = 2.0
        op['max_workers'] = 1
        op['output'] = 0
        op['htol'] = 1e-6

    op.update(kwargs)
    return op


def gethmatoptions(op: Optional[Dict[str, Any]] = None,
        **kwargs: Any) -> Dict[str, Any]:
    """
    Standard options, overridden first by the option dictionary op and then
    by keyword arguments. op itself is not modified.
    """
    merged = hmatoptions()
    if op is not None:
        merged.update(op)
    merged.update(kwargs)
    return merged
