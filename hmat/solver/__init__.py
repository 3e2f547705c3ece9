from .hmat_iter import HMatIter

__all__ = ["HMatIter"]
