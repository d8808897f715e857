"""
Integer swap kernels.

`cpmm_swap_v2` quotes Uniswap-v2 style constant-product pairs and
`clmm_swap_v1` quotes a single Q64.96 concentrated-liquidity range. Both take
and return plain ints and raise `KernelRejection` for trades the pool cannot fill.
"""
