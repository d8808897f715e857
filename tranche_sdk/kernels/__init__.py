"""
Kernel layer.

Integer-only pricing kernels for the AMM venue models. Kernels know nothing
about tokens or amounts; venue adapters in `tranche_sdk.core` wrap them.
"""
