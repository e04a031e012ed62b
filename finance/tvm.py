"""Fixed-rate time-value-of-money primitives (spreadsheet PMT / PV semantics).

Sign convention: a positive principal produces a positive payment and a
positive payment produces a positive present value, so that

    pmt(rate, n, pv(rate, n, P)) == P   (within floating tolerance)

Both functions degrade to linear arithmetic at a zero rate and return 0.0
for a non-positive number of periods instead of dividing by zero.
"""

from __future__ import annotations


def pmt(rate: float, nper: int, pv: float, fv: float = 0.0, due_at_start: int = 0) -> float:
    """Level payment that amortises ``pv`` down to ``fv`` over ``nper`` periods.

    Parameters
    ----------
    rate : float
        Interest rate per period (decimal, e.g. 0.08).
    nper : int
        Number of periods.
    pv : float
        Principal at t=0.
    fv : float, default 0.0
        Balance remaining after the last payment.
    due_at_start : int, default 0
        1 when payments fall at the start of each period (annuity due).

    Examples
    --------
    >>> round(pmt(0.08, 8, 1000.0), 4)
    174.0148
    >>> pmt(0.0, 4, 1000.0)
    250.0
    """
    if nper <= 0:
        return 0.0
    if rate == 0:
        return (pv + fv) / nper
    growth = (1.0 + rate) ** nper
    return (rate * (pv * growth + fv)) / ((1.0 + rate * due_at_start) * (growth - 1.0))


def pv(rate: float, nper: int, payment: float, fv: float = 0.0, due_at_start: int = 0) -> float:
    """Present value of a level annuity plus a discounted lump sum ``fv``.

    Examples
    --------
    >>> round(pv(0.08, 8, 174.0148), 2)
    1000.0
    >>> pv(0.0, 5, 100.0, 50.0)
    550.0
    """
    if nper <= 0:
        return 0.0
    if rate == 0:
        return payment * nper + fv
    discount = (1.0 + rate) ** -nper
    annuity_factor = (1.0 - discount) / rate
    return payment * (1.0 + rate * due_at_start) * annuity_factor + fv * discount
