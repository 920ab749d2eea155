"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the securitization system.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Share supply and settlement currency are conserved
2. atomicity.py - A failed call leaves no trace
3. wrapping.py - One wrapper per contract, wrappers are never wrapped
4. async_hazards.py - Fire-and-forget orderings that are kept on purpose

These tests use hypothesis for property-based testing.
"""
