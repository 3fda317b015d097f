"""
Colors Module

Quantization core: sampling, median-cut extraction, distance merging,
validator filtering and palette sorting.
"""
