"""
Scan2Plan quoting core.

Deterministic, rate-table-driven pricing for scan-to-BIM projects.
No I/O in the engine: callers load the rate tables and scoping form,
then call into shell_generator, pricing_engine, quote_totals and
production.prefill_cascade.
"""
