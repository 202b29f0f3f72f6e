"""
Cryptofolio market data gateway application package.
"""
