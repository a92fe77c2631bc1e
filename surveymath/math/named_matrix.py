"""
Named matrix for encoded survey responses.

Rows are named by response id and columns by feature name, so a row of the
feature matrix can always be traced back to the response and the answer
slice it came from. Storage is a pandas DataFrame.
"""

import numpy as np
import pandas as pd
from typing import Any, List, Optional, Union


class NamedMatrix:
    """
    A matrix with named rows and columns.

    Instances are treated as immutable.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix.

        Args:
            matrix: Matrix data (numpy array or pandas DataFrame)
            rownames: List of row names
            colnames: List of column names
        """
        if matrix is None:
            self._matrix = pd.DataFrame(
                index=list(rownames or []),
                columns=list(colnames or []),
                dtype=float
            )
        elif isinstance(matrix, pd.DataFrame):
            self._matrix = matrix.copy()
            if rownames is not None:
                self._matrix.index = list(rownames)
            if colnames is not None:
                self._matrix.columns = list(colnames)
        else:
            matrix = np.asarray(matrix, dtype=float)
            if matrix.ndim != 2:
                raise ValueError(f"Expected a 2-D matrix, got shape {matrix.shape}")
            rows = list(rownames) if rownames is not None else list(range(matrix.shape[0]))
            cols = list(colnames) if colnames is not None else list(range(matrix.shape[1]))
            self._matrix = pd.DataFrame(matrix, index=rows, columns=cols)

    @property
    def matrix(self) -> pd.DataFrame:
        """Get the underlying DataFrame."""
        return self._matrix

    @property
    def values(self) -> np.ndarray:
        """Get a float numpy copy of the matrix."""
        return self._matrix.to_numpy(dtype=float, copy=True)

    @property
    def shape(self):
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        return list(self._matrix.index)

    def colnames(self) -> List[Any]:
        return list(self._matrix.columns)

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={self._matrix.shape[0]}, cols={self._matrix.shape[1]})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {self._matrix.shape[0]} rows and "
                f"{self._matrix.shape[1]} columns\n{self._matrix}")
