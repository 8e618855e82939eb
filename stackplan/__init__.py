"""stackplan: declarative stack topology planner.

Builds an in-memory resource topology from a declaration, resolves the
endpoints each service is wired to, and emits an ordered provisioning plan
for a backend to execute.
"""

__version__ = "0.1.0"
