"""
Market-standard swaption formulas.

Prices a European swaption from its forward swap rate, strike, annuity and
quoted volatility:
- Black (1976): log-normal forward swap rate
- Bachelier: normal forward swap rate

Both formulas collapse to discounted intrinsic value when the total
volatility sigma * sqrt(T) vanishes.

Reference:
    Black, F. (1976). "The pricing of commodity contracts."
    Journal of Financial Economics, 3(1-2), 167-179.
"""

import math

from scipy.stats import norm

# Below this total volatility the option is priced at intrinsic value
_MIN_TOTAL_VOL = 1e-12


def _intrinsic(forward: float, strike: float, annuity: float, is_payer: bool) -> float:
    if is_payer:
        return annuity * max(forward - strike, 0.0)
    return annuity * max(strike - forward, 0.0)


def black_swaption_price(
    forward: float,
    strike: float,
    expiry: float,
    volatility: float,
    annuity: float,
    is_payer: bool = True,
) -> float:
    """
    Black price of a European swaption.

    Args:
        forward: Forward swap rate (> 0)
        strike: Fixed rate of the underlying swap (> 0)
        expiry: Option expiry in years
        volatility: Log-normal volatility of the forward swap rate
        annuity: Present value of the fixed leg per unit rate
        is_payer: Payer (right to pay fixed) or receiver swaption

    Returns:
        Swaption price per unit notional

    Raises:
        ValueError: If forward or strike is not positive
    """
    if forward <= 0 or strike <= 0:
        raise ValueError(
            f"Black formula needs positive forward and strike, "
            f"got forward={forward}, strike={strike}"
        )

    total_vol = volatility * math.sqrt(max(expiry, 0.0))
    if total_vol < _MIN_TOTAL_VOL:
        return _intrinsic(forward, strike, annuity, is_payer)

    d1 = (math.log(forward / strike) + 0.5 * total_vol**2) / total_vol
    d2 = d1 - total_vol

    if is_payer:
        price = forward * norm.cdf(d1) - strike * norm.cdf(d2)
    else:
        price = strike * norm.cdf(-d2) - forward * norm.cdf(-d1)

    return max(annuity * price, 0.0)


def bachelier_swaption_price(
    forward: float,
    strike: float,
    expiry: float,
    volatility: float,
    annuity: float,
    is_payer: bool = True,
) -> float:
    """
    Bachelier (normal) price of a European swaption.

    Args:
        forward: Forward swap rate
        strike: Fixed rate of the underlying swap
        expiry: Option expiry in years
        volatility: Normal (absolute) volatility of the forward swap rate
        annuity: Present value of the fixed leg per unit rate
        is_payer: Payer or receiver swaption

    Returns:
        Swaption price per unit notional
    """
    total_vol = volatility * math.sqrt(max(expiry, 0.0))
    if total_vol < _MIN_TOTAL_VOL:
        return _intrinsic(forward, strike, annuity, is_payer)

    d = (forward - strike) / total_vol
    if is_payer:
        price = (forward - strike) * norm.cdf(d) + total_vol * norm.pdf(d)
    else:
        price = (strike - forward) * norm.cdf(-d) + total_vol * norm.pdf(d)

    return max(annuity * price, 0.0)
