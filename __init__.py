"""
index option regression package
===============================

An event-driven simulator for index option algorithms together with the
regression algorithms that check its order, holdings and delisting
behaviour.  The modules are:

* :mod:`models` – Dataclasses for symbols, orders, events, slices and trades.
* :mod:`data_loader` – Contract listings, minute bars and option chain lookups.
* :mod:`sample_data` – Offline SPX January 2021 dataset.
* :mod:`scheduler` – Date/time rules on the NYSE calendar.
* :mod:`portfolio` – Security registry and holdings ledger.
* :mod:`simulator` – Event-driven run loop, orders, delistings and expiry.
* :mod:`performance` – Summary statistics of a completed run.
* :mod:`regression` – Expectation contract and run comparison.
* :mod:`strategies` – Package containing the base class and the algorithms.

The top-level entry point for running an algorithm is ``backtest.py``.
"""


"""
python3 -m backtest \
  --algorithm index_option_short_call_otm_expiry \
  --debug
"""
