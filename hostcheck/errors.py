"""
hostcheck.errors
AUTHOR: carter-vin

Error kinds surfaced by sources, sampler and evaluator

- SourceUnavailable: OS facility could not be queried (missing, permission, IO)
- ParseError: data was read but is not a usable percentage
- PolicyError: invalid threshold policy; fatal to evaluation
"""

from __future__ import annotations


class HealthCheckError(Exception):
    """
    Base for all host check errors
    """


class SourceUnavailable(HealthCheckError, RuntimeError):
    pass


class ParseError(HealthCheckError, ValueError):
    pass


class PolicyError(HealthCheckError, ValueError):
    pass
