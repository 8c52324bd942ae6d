"""
Job cost modules.

Each subpackage owns one slice of the domain:

    budget   -- budget line items and their derived planning fields
    expense  -- the expense ledger, time entries, and labor costing
    project  -- the project budget rollup and status classification

Modules persist through ``jobcost_kernel.db.DataStore`` and never import
from each other's services except ``project``, which reads through
``budget`` and ``expense``.
"""
