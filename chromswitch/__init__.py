"""
Chromatin State Switch Detection Package

A pipeline for detecting chromatin state switches between two biological
conditions. For each query region, per-sample peaks are summarized into a
feature matrix, samples are clustered hierarchically, and the clusters are
scored against the known conditions with external cluster validation metrics.
"""

__version__ = "0.1.0"
