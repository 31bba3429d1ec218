"""Services for the OMOP research export.

- export: identifiers, accumulator, publisher, stores and the run orchestrator
"""
