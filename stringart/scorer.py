import math

import numpy as np

# Rows summed per block before the early-exit check.
BLOCK_ROWS = 16


def score(target: np.ndarray, working: np.ndarray, mask, best_so_far: float = math.inf):
    """
    Sum of squared error between target and working + mask.

    Rows are summed in fixed blocks from top to bottom. As soon as the partial
    sum exceeds best_so_far the candidate cannot win and (partial, False) is
    returned; otherwise (loss, True).
    """
    loss = 0.0
    for r0 in range(0, target.shape[0], BLOCK_ROWS):
        r1 = r0 + BLOCK_ROWS
        residual = target[r0:r1] - working[r0:r1]
        if mask is not None:
            residual -= mask[r0:r1]
        loss += float(np.sum(residual * residual))
        if loss > best_so_far:
            return loss, False
    return loss, True


def grid_loss(target: np.ndarray, working: np.ndarray) -> float:
    loss, _ = score(target, working, None)
    return loss
