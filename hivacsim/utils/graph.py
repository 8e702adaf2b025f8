"""
Shortest path and clustering kernels over an undirected, unweighted graph.

Graphs are passed around in compressed sparse row form: the neighbours of
vertex v are indices[indptr[v]:indptr[v + 1]], sorted ascending. Unreachable
distances carry the sentinel value ``inf`` (the number of vertices), a path
can never be that long.
"""
import numpy as np
from numba import jit


def to_csr(neighbour_lists):
    """
    Build (indptr, indices) from a sequence of neighbour index iterables.
    """
    n = len(neighbour_lists)
    indptr = np.zeros(n + 1, dtype=np.int64)
    for v, neighbours in enumerate(neighbour_lists):
        indptr[v + 1] = indptr[v] + len(neighbours)
    indices = np.empty(indptr[-1], dtype=np.int64)
    for v, neighbours in enumerate(neighbour_lists):
        indices[indptr[v] : indptr[v + 1]] = sorted(neighbours)
    return indptr, indices


@jit(nopython=True)
def packed_index(row, col):
    if row < col:
        row, col = col, row
    return row * (row - 1) // 2 + col


@jit(nopython=True)
def floyd_warshall_packed(data, n, inf):
    """
    All pairs shortest paths in place on a packed symmetric matrix (see
    TriangularArray). Cells hold 1 for an edge and inf otherwise on entry.
    """
    for k in range(n):
        for row in range(n):
            if row == k:
                continue
            d_rk = data[packed_index(row, k)]
            if d_rk >= inf:
                continue
            for col in range(row + 1, n):
                if col == k:
                    continue
                d_kc = data[packed_index(k, col)]
                if d_kc < inf:
                    idx = packed_index(row, col)
                    if d_rk + d_kc < data[idx]:
                        data[idx] = d_rk + d_kc
    return data


@jit(nopython=True)
def floyd_warshall(dist, inf):
    """
    All pairs shortest paths in place on a full n x n matrix.
    """
    n = dist.shape[0]
    for k in range(n):
        for row in range(n):
            d_rk = dist[row, k]
            if d_rk >= inf:
                continue
            for col in range(n):
                d_kc = dist[k, col]
                if d_kc < inf and d_rk + d_kc < dist[row, col]:
                    dist[row, col] = d_rk + d_kc
    return dist


@jit(nopython=True)
def bfs_distances(indptr, indices, source, inf):
    n = indptr.shape[0] - 1
    distance = np.full(n, inf, dtype=np.int64)
    queue = np.empty(n, dtype=np.int64)
    distance[source] = 0
    queue[0] = source
    head = 0
    tail = 1
    while head < tail:
        v = queue[head]
        head += 1
        for j in range(indptr[v], indptr[v + 1]):
            w = indices[j]
            if distance[w] == inf:
                distance[w] = distance[v] + 1
                queue[tail] = w
                tail += 1
    return distance


@jit(nopython=True)
def bfs_distance(indptr, indices, source, target, inf):
    """
    Length of the shortest path between two vertices, stopping as soon as
    the target is reached.
    """
    if source == target:
        return 0
    n = indptr.shape[0] - 1
    distance = np.full(n, inf, dtype=np.int64)
    queue = np.empty(n, dtype=np.int64)
    distance[source] = 0
    queue[0] = source
    head = 0
    tail = 1
    while head < tail:
        v = queue[head]
        head += 1
        for j in range(indptr[v], indptr[v + 1]):
            w = indices[j]
            if distance[w] == inf:
                distance[w] = distance[v] + 1
                if w == target:
                    return distance[w]
                queue[tail] = w
                tail += 1
    return inf


@jit(nopython=True)
def all_pairs_bfs(indptr, indices, inf):
    n = indptr.shape[0] - 1
    dist = np.empty((n, n), dtype=np.int64)
    for source in range(n):
        dist[source, :] = bfs_distances(indptr, indices, source, inf)
    return dist


@jit(nopython=True)
def _has_edge(indptr, indices, a, b):
    lo = indptr[a]
    hi = indptr[a + 1]
    pos = lo + np.searchsorted(indices[lo:hi], b)
    return pos < hi and indices[pos] == b


@jit(nopython=True)
def closed_triads(indptr, indices):
    """
    For every vertex, the number of edges among its neighbours.
    """
    n = indptr.shape[0] - 1
    closed = np.zeros(n, dtype=np.int64)
    for v in range(n):
        start = indptr[v]
        stop = indptr[v + 1]
        for i in range(start, stop):
            for j in range(i + 1, stop):
                if _has_edge(indptr, indices, indices[i], indices[j]):
                    closed[v] += 1
    return closed


@jit(nopython=True)
def _partition(values, lo, hi):
    pivot_idx = np.random.randint(lo, hi + 1)
    values[pivot_idx], values[hi] = values[hi], values[pivot_idx]
    pivot = values[hi]
    store = lo
    for i in range(lo, hi):
        if values[i] < pivot:
            values[i], values[store] = values[store], values[i]
            store += 1
    values[store], values[hi] = values[hi], values[store]
    return store


@jit(nopython=True)
def randomized_quicksort(values):
    """
    In place quicksort with random pivots, iterative over an explicit stack.
    """
    n = values.shape[0]
    if n < 2:
        return values
    stack = np.empty(4 * n + 4, dtype=np.int64)
    top = 0
    stack[top] = 0
    stack[top + 1] = n - 1
    top += 2
    while top > 0:
        top -= 2
        lo = stack[top]
        hi = stack[top + 1]
        if lo >= hi:
            continue
        p = _partition(values, lo, hi)
        stack[top] = lo
        stack[top + 1] = p - 1
        top += 2
        stack[top] = p + 1
        stack[top + 1] = hi
        top += 2
    return values


def median(values) -> float:
    """
    Median after a randomized quicksort; an even count averages the two
    middle values.
    """
    values = randomized_quicksort(np.array(values, dtype=np.float64))
    count = values.shape[0]
    if count == 0:
        return float("nan")
    if count % 2:
        return float(values[(count - 1) // 2])
    half = count // 2
    return float((values[half - 1] + values[half]) / 2.0)


def vertex_means(dist) -> np.ndarray:
    """
    Mean of every row of a distance matrix, the diagonal included.
    """
    n = dist.shape[0]
    return dist.sum(axis=1) / n
