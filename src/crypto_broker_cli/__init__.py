"""
Crypto Broker CLI - instrumented command-line client for the Crypto Broker.

This package issues hashing, certificate signing, health and benchmark
requests through an external client library, running each request once or
on a fixed cadence, and traces every request with OpenTelemetry.
"""

__version__ = "0.1.0"
