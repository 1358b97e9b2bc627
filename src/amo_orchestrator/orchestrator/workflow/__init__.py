"""Effect-driven workflow engine.

This package holds first-class types for:
- Events (triggers and state mutations)
- Effects (declarative steps a procedure yields)
- The scheduler that interprets effects with latest-wins cancellation
- The workflow procedures for collections and user accounts

Procedures never touch the store or the network directly; everything they do
is described by the effects they yield, which keeps them deterministic and
easy to test.
"""

__all__: list[str] = []
