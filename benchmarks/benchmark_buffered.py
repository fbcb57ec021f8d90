import time
import tracemalloc

import numpy as np

import mutarith
from mutarith import ADD_DOT, ADD_MUL, BigInt


def _bigint_vector(n, seed):
    rng = np.random.default_rng(seed)
    return mutarith.vector([BigInt(int(v)) for v in rng.integers(-(10**6), 10**6, size=n)], eltype=BigInt)


def _timed(fn):
    tracemalloc.start()
    start = time.perf_counter()
    result = fn()
    elapsed = time.perf_counter() - start
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return result, elapsed, peak


def dot_allocating(x, y):
    acc = BigInt(0)
    for a, b in zip(x, y):
        acc = acc + a * b
    return acc


def dot_buffered(x, y):
    acc = BigInt(0)
    buf = mutarith.buffer_for(ADD_MUL, BigInt, BigInt, BigInt)
    for a, b in zip(x, y):
        acc = mutarith.buffered_operate_inplace(buf, ADD_MUL, acc, a, b)
    return acc


def benchmark_dot():
    print("\n[Benchmark 1: BigInt dot product]")
    print(f"{'Length':<10} | {'Alloc (s)':<12} | {'Buffered (s)':<12} | {'Fused (s)':<12} | {'Peak alloc/buffered (KiB)':<26}")
    print("-" * 82)
    for n in (1_000, 10_000, 50_000):
        x = _bigint_vector(n, 0)
        y = _bigint_vector(n, 1)
        r0, t0, p0 = _timed(lambda: dot_allocating(x, y))
        r1, t1, p1 = _timed(lambda: dot_buffered(x, y))
        r2, t2, _ = _timed(lambda: mutarith.fused_map_reduce(ADD_DOT, x, y))
        assert r0 == r1 == r2
        print(f"{n:<10} | {t0:<12.4f} | {t1:<12.4f} | {t2:<12.4f} | {p0 / 1024:>10.1f} / {p1 / 1024:<10.1f}")


def benchmark_matmul():
    print("\n[Benchmark 2: matrix product accumulate]")
    print(f"{'Size':<8} | {'Eltype':<10} | {'operate (s)':<12} | {'operate_to (s)':<14} | {'path':<20}")
    print("-" * 76)
    for n in (16, 32, 64):
        rng = np.random.default_rng(n)
        raw_a = rng.integers(-50, 50, size=(n, n))
        raw_b = rng.integers(-50, 50, size=(n, n))
        for label, eltype in (("int64", np.int64), ("bigint", BigInt)):
            if eltype is BigInt:
                A = mutarith.matrix([[BigInt(int(v)) for v in row] for row in raw_a], eltype=BigInt)
                B = mutarith.matrix([[BigInt(int(v)) for v in row] for row in raw_b], eltype=BigInt)
            else:
                A = mutarith.matrix(raw_a, eltype=eltype)
                B = mutarith.matrix(raw_b, eltype=eltype)
            C = mutarith.zeros(eltype, n, n)

            start = time.perf_counter()
            expected = A @ B
            t_alloc = time.perf_counter() - start

            start = time.perf_counter()
            mutarith.operate_to(C, mutarith.mul, A, B)
            t_into = time.perf_counter() - start
            path = mutarith._debug_last_dispatch_trace()

            assert mutarith.isequal_canonical(C, expected)
            print(f"{n:<8} | {label:<10} | {t_alloc:<12.4f} | {t_into:<14.4f} | {path:<20}")


if __name__ == "__main__":
    print("=" * 80)
    print("MUTARITH BUFFERED ARITHMETIC BENCHMARK")
    print("=" * 80)
    benchmark_dot()
    benchmark_matmul()
