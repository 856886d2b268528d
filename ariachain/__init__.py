"""Epoch-based deterministic transaction execution, reservation tables, chaincode, block storage and workload generators."""

__version__ = "0.1.0"