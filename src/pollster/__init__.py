"""
Pollster: wait until a fallible, possibly slow operation yields an acceptable result.

Repeatedly runs a probe until its value satisfies a predicate or a retry
budget is exhausted, with a uniform policy for exceptions, waits between
attempts, cancellation and timeouts.
"""

__version__ = "0.1.0"
