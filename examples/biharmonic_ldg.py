"""
Refinement study of the lifted LDG bi-Laplacian on the unit square.

    python examples/biharmonic_ldg.py --levels 2 3 4 --degree 2 --plot
"""
import argparse
import logging
import sys

import matplotlib.pyplot as plt
import pandas as pd

from pyldgfem.errors import PyLDGFEMError
from pyldgfem.solvers.biharmonic import refinement_study

logger = logging.getLogger("biharmonic_ldg")


def _parse_args(argv=None):
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--levels", type=int, nargs="+", default=[2, 3, 4],
                   help="global refinement levels of the unit square")
    p.add_argument("--degree", type=int, default=2, help="polynomial degree of the DG space")
    p.add_argument("--penalty-grad", type=float, default=1.0, help="gradient jump penalty")
    p.add_argument("--penalty-val", type=float, default=1.0, help="value jump penalty")
    p.add_argument("--element", choices=("quad", "tri"), default="quad")
    p.add_argument("--hessian", choices=("discrete", "broken"), default="discrete",
                   help="Hessian used in the H2 error")
    p.add_argument("--csv", default=None, help="write the convergence table to this file")
    p.add_argument("--plot", action="store_true", help="plot the errors against h")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def convergence_table(study) -> pd.DataFrame:
    rows = []
    for i, lvl in enumerate(study["levels"]):
        row = {"level": lvl.n_refinements, "cells": lvl.n_cells, "dofs": lvl.n_dofs, "h": lvl.h}
        for name in ("h2", "h1", "l2"):
            row[name.upper()] = getattr(lvl.errors, name)
            row[f"rate {name.upper()}"] = study["rates"][name][i - 1] if i else float("nan")
        rows.append(row)
    return pd.DataFrame(rows)


def _plot(study):
    hs = [lvl.h for lvl in study["levels"]]
    fig, ax = plt.subplots(figsize=(5, 4))
    for name, label in (("h2", "H2"), ("h1", "H1"), ("l2", "L2")):
        ax.loglog(hs, [getattr(lvl.errors, name) for lvl in study["levels"]], "o-", label=label)
    ax.set_xlabel("h")
    ax.set_ylabel("error")
    ax.grid(True, which="both", ls=":")
    ax.legend()
    fig.tight_layout()
    plt.show()


def main(argv=None):
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        study = refinement_study(args.levels, args.degree, args.penalty_grad, args.penalty_val,
                                 args.element, hessian=args.hessian)
    except PyLDGFEMError as exc:
        logger.error("Run failed: %s", exc)
        return 1
    except Exception:
        logger.exception("Unexpected failure")
        return 1

    table = convergence_table(study)
    print(table.to_string(index=False, float_format=lambda v: f"{v:.4e}"))
    if args.csv:
        table.to_csv(args.csv, index=False)
    if args.plot:
        _plot(study)
    return 0


if __name__ == "__main__":
    sys.exit(main())
