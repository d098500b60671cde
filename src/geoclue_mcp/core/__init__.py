"""Diagnostic core: probes, health rollup, log analysis, exporter parsing."""
