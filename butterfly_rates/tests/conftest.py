"""
Pytest fixtures for butterfly rates tests.
"""

import pytest


def contract(strike, side, bid=None, ask=None, ltp=None, **extra):
    """Build a flat per-contract feed record."""
    record = {"strike_price": strike, "option_type": side}
    if bid is not None:
        record["bid_price"] = bid
    if ask is not None:
        record["ask_price"] = ask
    if ltp is not None:
        record["ltp"] = ltp
    record.update(extra)
    return record


def linear_chain(start, stop, step):
    """
    Chain whose prices are linear in strike, so every 1-2-1 butterfly costs 4.

    Call ask = 24600 - strike, put ask = strike - 23500, bids 2 below asks.
    """
    rows = [{"strike_price": -1, "ltp": 24070.0, "symbol": "NSE:NIFTY50-INDEX"}]
    for strike in range(start, stop + 1, step):
        call_ask = 24600 - strike
        put_ask = strike - 23500
        rows.append(contract(strike, "CE", bid=call_ask - 2, ask=call_ask, ltp=call_ask - 1))
        rows.append(contract(strike, "PE", bid=put_ask - 2, ask=put_ask, ltp=put_ask - 1))
    return rows


@pytest.fixture
def nifty_chain():
    """Linear NIFTY-style chain from 23600 to 24500 in 50-point steps."""
    return linear_chain(23600, 24500, 50)


@pytest.fixture
def fine_chain():
    """Linear chain from 23600 to 24500 in 25-point steps."""
    return linear_chain(23600, 24500, 25)


@pytest.fixture
def small_chain():
    """
    Five-strike chain with convex call and put prices.

    strike  call bid/ask  put bid/ask
    100     60/62         1/2
    150     30/32         4/6
    200     12/14         12/14
    250     4/6           30/32
    300     1/2           60/62
    """
    quotes = {
        100: ((60, 62), (1, 2)),
        150: ((30, 32), (4, 6)),
        200: ((12, 14), (12, 14)),
        250: ((4, 6), (30, 32)),
        300: ((1, 2), (60, 62)),
    }
    rows = []
    for strike, ((cb, ca), (pb, pa)) in quotes.items():
        rows.append(contract(strike, "CE", bid=cb, ask=ca, ltp=(cb + ca) / 2))
        rows.append(contract(strike, "PE", bid=pb, ask=pa, ltp=(pb + pa) / 2))
    return rows


@pytest.fixture
def make_contract():
    """Factory for flat per-contract feed records."""
    return contract
