#!/usr/bin/env python3
import argparse
import statistics as stats
import time

import numpy as np

import fastmm as fm


def rand_matrix(rows: int, cols: int, dtype: str, seed: int = 0) -> fm.Matrix:
    rng = np.random.default_rng(seed)
    if np.issubdtype(np.dtype(dtype), np.integer):
        values = rng.integers(-8, 8, size=(rows, cols))
    else:
        values = rng.uniform(-0.5, 0.5, size=(rows, cols))
    return fm.Matrix.from_numpy(values, dtype=dtype)


def bench_once(fn, iters: int = 5, warmup: int = 1):
    for _ in range(warmup):
        fn()

    times = []
    for _ in range(iters):
        start = time.perf_counter()
        fn()
        end = time.perf_counter()
        times.append((end - start) * 1000.0)

    return {
        "best_ms": min(times),
        "median_ms": stats.median(times),
        "n": iters,
    }


def fmt(res: dict) -> str:
    return f"best={res['best_ms']:.3f} ms, median={res['median_ms']:.3f} ms (n={res['n']})"


def parse_sizes(spec: str):
    pairs = []
    for chunk in spec.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        if "x" in chunk:
            left, right = chunk.split("x", 1)
            m, k = map(int, left.split(","))
            k2, n = map(int, right.split(","))
            if k != k2:
                raise ValueError("inner dims mismatch in spec")
        else:
            k, k2 = map(int, chunk.split(","))
            if k != k2:
                raise ValueError("square spec requires equal dims")
            m = n = k
        pairs.append((m, k, n))
    return pairs


def main():
    parser = argparse.ArgumentParser(description="Compare fastmm multiplication strategies.")
    parser.add_argument(
        "--sizes",
        default="32,32;64,64;48,96x96,48",
        help="shapes like 'M,N;K,K;A,BxB,A' => pairs for (M,K)@(K,N)",
    )
    parser.add_argument("--iters", type=int, default=5)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--dtype", default="float64")
    parser.add_argument(
        "--strategy",
        default="all",
        choices=["all", *fm.available_strategies()],
    )
    args = parser.parse_args()

    strategies = (
        fm.available_strategies() if args.strategy == "all" else (args.strategy,)
    )

    for (m, k, n) in parse_sizes(args.sizes):
        print(f"\n== GEMM {m}x{k} @ {k}x{n} [{args.dtype}] ==")

        a = rand_matrix(m, k, args.dtype, seed=0)
        b = rand_matrix(k, n, args.dtype, seed=1)
        a_np = a.to_numpy()
        b_np = b.to_numpy()

        results = {}
        for name in strategies:
            res = bench_once(
                lambda name=name: fm.matmul(a, b, strategy=name),
                iters=args.iters,
                warmup=args.warmup,
            )
            results[name] = fm.matmul(a, b, strategy=name)
            print(f"fastmm.matmul[{name:>10}] -> {fmt(res)}")

        res_np = bench_once(lambda: a_np @ b_np, iters=args.iters, warmup=args.warmup)
        print(f"numpy @                    -> {fmt(res_np)}")

        if len(results) == 2:
            agree = results["naive"] == results["transposed"]
            print(f"strategies agree: {'yes' if agree else 'NO'}")
        for name, product in results.items():
            close = np.allclose(product.to_numpy(), a_np @ b_np)
            print(f"{name} matches numpy: {'yes' if close else 'NO'}")


if __name__ == "__main__":
    main()
