"""
Cryptofolio market data gateway service.
"""
