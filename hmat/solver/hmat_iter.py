import logging

from typing import List, Dict, Tuple, Optional, Any, Callable

import numpy as np
from scipy.sparse.linalg import gmres, cgs, bicgstab, LinearOperator

from ..errors import DimensionMismatchError
from ..matrix.hmatrix import HMatrix


class HMatIter(object):

    # Iterative solution of A x = b with A given as an H-matrix.
    # The H-matrix is only touched through apply(), once per iteration.

    SOLVER_MAP = {
        'gmres': gmres,
        'cgs': cgs,
        'bicgstab': bicgstab,
    }

    def __init__(self,
            solver: str = 'gmres',
            tol: float = 1e-6,
            maxit: int = 200,
            restart: Optional[int] = None,
            output: int = 0,
            logger: Optional[logging.Logger] = None,
            **kwargs: Any) -> None:

        if solver not in self.SOLVER_MAP:
            raise ValueError('[error] iterative solver not known: <{}>'.format(solver))

        self.solver = solver
        self.tol = tol
        self.maxit = maxit
        self.restart = restart
        self.output = output
        self.logger = logger or logging.getLogger(__name__)

        self._flag = None
        self._relres = None
        self._iter = None
        self._stat = None

    def solve(self,
            hmat: HMatrix,
            b: np.ndarray,
            x0: Optional[np.ndarray] = None,
            precond: Optional[Callable[[np.ndarray], np.ndarray]] = None) -> Tuple[np.ndarray, int]:

        # precond: callable approximating A^-1 b
        if hmat.rows() != hmat.columns():
            raise DimensionMismatchError('columns of square H-matrix', hmat.rows(), hmat.columns())

        b = np.asarray(b)
        n = hmat.rows()
        if b.shape != (n,):
            raise DimensionMismatchError('shape of right-hand side', (n,), b.shape)

        dtype = np.result_type(hmat.dtype, b)
        a_op = hmat.as_linear_operator()

        m_op = None
        if precond is not None:
            m_op = LinearOperator((n, n), matvec = precond, dtype = dtype)

        count = [0]

        def callback(*args: Any) -> None:
            count[0] += 1

        if self.solver == 'gmres':
            restart = self.restart if self.restart is not None else min(n, 20)
            x, flag = gmres(a_op, b, x0 = x0, rtol = self.tol, maxiter = self.maxit,
                restart = restart, M = m_op, callback = callback, callback_type = 'pr_norm')
        else:
            x, flag = self.SOLVER_MAP[self.solver](a_op, b, x0 = x0, rtol = self.tol,
                maxiter = self.maxit, M = m_op, callback = callback)

        bnorm = np.linalg.norm(b)
        relres = np.linalg.norm(hmat.dot(x) - b) / bnorm if bnorm > 0 else 0.0

        self._set_iter(flag, relres, count[0])
        self._set_stat(hmat)
        if self.output:
            self._print_stat(flag, relres, count[0])

        return x, flag

    def _set_iter(self,
            flag: int,
            relres: float,
            niter: int) -> None:

        if self._flag is None:
            self._flag = []
            self._relres = []
            self._iter = []

        self._flag.append(flag)
        self._relres.append(relres)
        self._iter.append(niter)

    def _set_stat(self, hmat: HMatrix) -> None:

        if self._stat is None:
            self._stat = {'compression': []}
        self._stat['compression'].append(hmat.compression())

    def _print_stat(self,
            flag: int,
            relres: float,
            niter: int) -> None:

        self.logger.info('%s(%d), it=%3d, res=%10.4g, flag=%d',
            self.solver, self.maxit, niter, relres, flag)

    def info(self) -> Tuple[List[int], List[float], List[int]]:

        return self._flag, self._relres, self._iter

    def hinfo(self) -> Optional[float]:

        # Mean compression of all operators solved so far
        if self._stat is None:
            return None

        eta = float(np.mean(self._stat['compression']))
        self.logger.info('Compression H-matrices  :  %8.6f', eta)
        return eta

    @staticmethod
    def options(**kwargs: Any) -> Dict[str, Any]:

        op = {
            'solver': 'gmres',
            'tol': 1e-6,
            'maxit': 200,
            'restart': None,
            'output': 0,
        }

        for key, val in kwargs.items():
            if key in op:
                op[key] = val

        return op

    def __repr__(self) -> str:
        return 'HMatIter(solver={}, tol={}, maxit={})'.format(
            self.solver, self.tol, self.maxit)
