"""Capability adapters: chain data sources, provers and ledgers."""
